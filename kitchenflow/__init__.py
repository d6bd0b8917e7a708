"""
KitchenFlow order lifecycle and kitchen ticket service
"""
