"""Boutique en ligne: checkout multi-paiement, réconciliation des webhooks Stripe, commandes et stock."""
