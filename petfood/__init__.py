"""
PetFood VerifAI Django application.

This app resolves pet food products, acquires their ingredient lists,
asks a language model for a feeding verdict and keeps a per-user,
versioned history of the resulting analyses.
"""
