"""Seed data for a fresh governance store."""
from .default_rules import SEED_RULES, seed_default_rules

__all__ = ["SEED_RULES", "seed_default_rules"]
