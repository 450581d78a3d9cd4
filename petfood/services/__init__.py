"""
Services for PetFood VerifAI.

- analysis_orchestrator: create-analysis end to end
- product_identity: product dedup and creation
- ingredient_resolver: ingredient text from input or scraper
- model_client: language model providers and response parsing
- history: analysis lists and detail
- feedback: thumbs up/down votes
"""
