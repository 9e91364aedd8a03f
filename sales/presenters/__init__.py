from .affiliates import AffiliatedProductsPresenter, AffiliatesPresenter
from .checkout import CheckoutPresenter
from .customer import CustomerPresenter
from .receipt import PaymentInfo, ReceiptPresenter

__all__ = [
    "AffiliatedProductsPresenter",
    "AffiliatesPresenter",
    "CheckoutPresenter",
    "CustomerPresenter",
    "PaymentInfo",
    "ReceiptPresenter",
]
