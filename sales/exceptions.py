class SalesError(Exception):
    """Base class for sales domain errors."""


class RefundError(SalesError):
    """A refund could not be issued or recorded."""