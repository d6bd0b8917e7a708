"""
HTTP routers for orders, kitchen tickets and tenant context
"""
