from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CheckoutOutcome:
    """Résultat uniforme d'un chemin de paiement.
    - redirect: commande différée (confirmation asynchrone du processeur).
    - committed: commande déjà enregistrée dans la requête.
    """
    kind: str
    redirect_url: str
    order_number: str
    order: Optional[Dict[str, Any]] = None

    @classmethod
    def redirect(cls, url: str, order_number: str) -> "CheckoutOutcome":
        return cls(kind="redirect", redirect_url=url, order_number=order_number)

    @classmethod
    def committed(cls, url: str, order_number: str, order: Dict[str, Any]) -> "CheckoutOutcome":
        return cls(kind="committed", redirect_url=url, order_number=order_number, order=order)
