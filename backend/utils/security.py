from fastapi import Request, HTTPException, Depends
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

def get_current_user(request: Request) -> Dict[str, Any]:
    """
    Claim d'identité de la requête (Authorization: Bearer <token Supabase>).
    - 401 si token absent, invalide ou expiré.
    """
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()

    if not token:
        raise HTTPException(status_code=401, detail="Accès refusé: token manquant, veuillez vous connecter")

    try:
        from backend.auth.service import get_user_from_token as _svc_get_user_from_token
        user = _svc_get_user_from_token(token)
    except Exception:
        logger.warning("security.get_current_user token rejected", exc_info=True)
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    if not user.get("id"):
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    return user

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user

def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Accès refusé: droits administrateur requis")
    return user
