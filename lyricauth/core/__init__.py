"""Configuration, errors, hashing, tokens, sessions and mail delivery."""
