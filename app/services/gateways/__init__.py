# Payment Gateways
from app.services.gateways.base import BaseGateway, PaymentOrder, PaymentStatus
from app.services.gateways.razorpay import RazorpayGateway

GATEWAYS = {
    'razorpay': RazorpayGateway,
}

def get_gateway(name: str = 'razorpay') -> BaseGateway:
    """Get gateway instance by name"""
    gateway_class = GATEWAYS.get(name.lower())
    if not gateway_class:
        raise ValueError(f"Unknown gateway: {name}. Available: {list(GATEWAYS.keys())}")
    return gateway_class()
