from authvault.persistence.sqlalchemy.models.credentials_model import CredentialsModel
from authvault.persistence.sqlalchemy.models.user_model import UserModel
from authvault.persistence.sqlalchemy.models.user_provider_model import (
    UserProviderModel,
)
from authvault.persistence.sqlalchemy.models.user_token_pair_model import (
    UserTokenPairModel,
)

__all__ = [
    "CredentialsModel",
    "UserModel",
    "UserProviderModel",
    "UserTokenPairModel",
]
