"""Stateless data-access classes over AsyncSession."""
