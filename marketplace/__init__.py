"""
Backend de la marketplace: paiements Stripe Connect, annulations, shipping Shippo,
onboarding vendeurs, purge des annonces vendues et messagerie acheteur/vendeur.
"""
