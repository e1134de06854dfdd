"""Infrastructure adapters: persistence, encryption and email delivery."""
