# Package "M" (Models): tables SQLAlchemy partagées, importées via backend.models.db.
