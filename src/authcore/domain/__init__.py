"""Domain layer: accounts, value objects and security interfaces."""
