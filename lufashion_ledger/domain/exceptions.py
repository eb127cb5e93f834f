"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidAmountError(DomainException):
    """Amount is zero, negative, or not an integer number of cents"""

    pass


class InvalidCustomerDataError(DomainException):
    """Customer fields failed validation (e.g. blank name)"""

    pass


class NotFoundError(DomainException):
    """Referenced entity does not exist"""

    pass


class CustomerNotFoundError(NotFoundError):
    def __init__(self, customer_id: str):
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class TransactionNotFoundError(NotFoundError):
    def __init__(self, customer_id: str, transaction_id: str):
        super().__init__(f"Transaction {transaction_id} not found for customer {customer_id}")
        self.customer_id = customer_id
        self.transaction_id = transaction_id


class PersistenceUnavailableError(DomainException):
    """Durable store failed; in-memory state stays authoritative"""

    pass


class NotificationError(DomainException):
    """Notification webhook rejected or could not be reached"""

    pass
