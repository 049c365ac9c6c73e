"""Content generation gateway: requests, prompts, provider calls, validation, fallbacks."""
