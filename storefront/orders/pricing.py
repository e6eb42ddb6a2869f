"""
Calcul des prix (logique pure, pas de DB).
Les montants sont manipulés en Decimal et arrondis au centime uniquement à l'écriture.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Tuple

from storefront.errors import InvalidInput

CENT = Decimal("0.01")
HUNDRED = Decimal(100)


@dataclass(frozen=True)
class Totals:
    total_price: Decimal
    amount_discount: Decimal


def to_decimal(value: Any) -> Decimal:
    """str|int|float|None -> Decimal; 0 si absent ou non numérique."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(0)

def unit_price_and_discount(product: Dict[str, Any]) -> Tuple[Decimal, Decimal]:
    """
    (prix catalogue, remise unitaire) pour un produit.
    - discount est un pourcentage du prix (10 => 10 %).
    """
    price = to_decimal(product.get("price"))
    discount_percent = to_decimal(product.get("discount"))
    return price, discount_percent * price / HUNDRED

def compute_totals(lines: Iterable[Any], products_by_id: Dict[str, Dict[str, Any]]) -> Totals:
    """
    Total après remise et remise cumulée, à partir des produits COURANTS.
    total = Σ (prix - remise) × quantité ; remise = Σ remise × quantité
    - Produit introuvable: InvalidInput (rien n'est écrit).
    """
    total = Decimal(0)
    discount_total = Decimal(0)
    for line in lines:
        product = products_by_id.get(str(line.product_id))
        if not product:
            raise InvalidInput(f"Unknown product: {line.product_id}")
        price, discount = unit_price_and_discount(product)
        total += (price - discount) * line.quantity
        discount_total += discount * line.quantity
    return Totals(total_price=total, amount_discount=discount_total)

def to_minor_units(amount: Any) -> int:
    """Prix -> entier en centimes (arrondi demi-supérieur), ex: 12.345 -> 1235."""
    return int((to_decimal(amount) * HUNDRED).quantize(Decimal(1), rounding=ROUND_HALF_UP))

def from_minor_units(amount: Any) -> Decimal:
    """Montant processeur en centimes -> Decimal (None -> 0)."""
    return to_decimal(amount) / HUNDRED

def money(amount: Decimal) -> float:
    """Valeur stockée dans le document commande (2 décimales)."""
    return float(amount.quantize(CENT, rounding=ROUND_HALF_UP))
