"""
Client Supabase (fournisseur d'identité uniquement).
Les tokens d'accès émis par Supabase Auth sont résolus en {id, email, role};
les données du magasin vivent dans la base transactionnelle (backend.infra.database).
"""
from typing import Optional
from supabase import create_client, Client
from backend.config import SUPABASE_URL, SUPABASE_ANON

_supabase: Optional[Client] = None

def get_supabase() -> Client:
    global _supabase
    if _supabase is None:
        if not SUPABASE_URL or not SUPABASE_ANON:
            raise RuntimeError("SUPABASE_URL/SUPABASE_ANON_KEY manquants pour get_supabase()")
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON)
    return _supabase
