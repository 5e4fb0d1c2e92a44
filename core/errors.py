"""
Common Error Constants

Centralized error messages to avoid string duplication.
"""

# Storage errors
ERROR_REDIS_NOT_CONFIGURED = "UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set"
ERROR_CART_READ_FAILED = "Failed to read cart snapshot"
ERROR_CART_WRITE_FAILED = "Failed to write cart snapshot"
ERROR_CART_CORRUPTED = "Corrupted cart snapshot"

# Checkout errors
ERROR_FIELD_REQUIRED = "Missing required field"
ERROR_INVALID_POSTCODE = "Postcode must be 5 digits"
ERROR_INVALID_PHONE = "Phone number must be 9-10 digits"
ERROR_SLIP_REQUIRED = "Transfer payment requires a payment slip"
ERROR_CART_EMPTY = "Cart is empty"
