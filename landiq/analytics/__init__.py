"""Usage and product-event analytics for the dashboard charts"""
