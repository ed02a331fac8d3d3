"""Python client side of the storefront: API client, cart, listing filters and chat connection."""
