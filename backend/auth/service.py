"""Service Auth: transforme un token Supabase en claim d'identité {id, email, role}.
L'émission et la vérification des identifiants restent chez Supabase Auth.
"""
from typing import Dict, Any
from .repository import get_user_from_access_token as _repo_get_user_from_token

def determine_role(metadata: Dict[str, Any] | None) -> str:
    role_lower = str((metadata or {}).get("role", "")).lower()
    if role_lower == "admin":
        return "admin"
    return "user"

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise user issu de supabase.auth.get_user(access_token):
    - Retourne {id, email, role, token}
    - Le rôle vient de app_metadata (non modifiable par l'utilisateur), sinon user_metadata
    """
    raw = _repo_get_user_from_token(access_token)
    metadata = raw.get("app_metadata") or raw.get("user_metadata") or {}
    return {
        "id": raw.get("id"),
        "email": raw.get("email"),
        "role": determine_role(metadata),
        "token": access_token,
    }
