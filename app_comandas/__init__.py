"""Comanda order management service: stores create orders, couriers claim and fulfill them."""
