from .razorpay_client import RazorpayClient

__all__ = ["RazorpayClient"]
