"""
Error taxonomy shared by services and the HTTP layer.

Services raise these; handlers registered in main.py turn them into the
`{success: false, message}` envelope with the matching status code.
"""
from fastapi import status


class MycorisError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Erreur serveur"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# 400 ---------------------------------------------------------------

class ValidationError(MycorisError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Données invalides"


class MissingFieldError(ValidationError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Le champ '{field}' est obligatoire")


class MissingCommercialCodeError(ValidationError):
    message = "Le code apporteur est obligatoire pour les commerciaux"


class RoleMismatchError(ValidationError):
    message = "L'email commercial doit contenir \"coriscomvi25\""


class UnexpectedCommercialCodeError(ValidationError):
    message = "Seuls les commerciaux peuvent avoir un code apporteur"


class InvalidEmailError(ValidationError):
    message = "Adresse email invalide"


class MissingFileError(ValidationError):
    message = "Aucun fichier téléchargé"


class UnsupportedFileError(ValidationError):
    message = "Type de fichier non supporté"


class FileTooLargeError(ValidationError):
    message = "Fichier trop volumineux"


# 401 ---------------------------------------------------------------

class AuthenticationError(MycorisError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentification requise"


# Unknown email and wrong password share one message so that callers
# cannot probe which emails are registered.
INVALID_CREDENTIALS_MESSAGE = "Email ou mot de passe incorrect"


class AccountNotFoundError(AuthenticationError):
    message = INVALID_CREDENTIALS_MESSAGE


class InvalidCredentialError(AuthenticationError):
    message = INVALID_CREDENTIALS_MESSAGE


class InvalidTokenError(AuthenticationError):
    message = "Token invalide ou expiré"


# 403 / 404 / 409 ---------------------------------------------------

class AuthorizationError(MycorisError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Accès refusé"


class NotFoundError(MycorisError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Ressource non trouvée"


class ConflictError(MycorisError):
    status_code = status.HTTP_409_CONFLICT
    message = "Conflit avec une ressource existante"


# 503 ---------------------------------------------------------------

class TransientInfrastructureError(MycorisError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Service temporairement indisponible"
