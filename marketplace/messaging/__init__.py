"""
Module 'messaging': conversations acheteur/vendeur avec rétention de 30 jours.
"""

from .store import MessageStore, describe_age, expires_in_days

__all__ = ["MessageStore", "describe_age", "expires_in_days"]
