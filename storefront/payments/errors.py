"""
Taxonomie des erreurs du flux de paiement.
Chaque erreur porte un status HTTP et un message sûr pour le client;
le rendu JSON {"message": ...} est centralisé dans app_setup.exceptions.
"""

GENERIC_ERROR_MESSAGE = "Something went wrong"

class PaymentError(Exception):
    status_code = 400

    def __init__(self, message: str | None = None):
        self.message = message or GENERIC_ERROR_MESSAGE
        super().__init__(self.message)

class InvalidRequestError(PaymentError):
    """Requête invalide (order_id manquant, montant <= 0, produit inconnu)."""
    status_code = 400

class TamperError(PaymentError):
    """Montant client ou passerelle différent du montant recalculé/stocké."""
    status_code = 400

class NotFoundError(PaymentError):
    status_code = 404

class GatewayError(PaymentError):
    """Erreur renvoyée par la passerelle: message transmis tel quel."""
    status_code = 502

class GatewayTimeoutError(GatewayError):
    status_code = 504

class UnknownError(PaymentError):
    """Toute autre erreur: message opaque, aucun détail interne."""
    status_code = 500

    def __init__(self):
        super().__init__(GENERIC_ERROR_MESSAGE)
