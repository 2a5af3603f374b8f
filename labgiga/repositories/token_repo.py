from labgiga.extensions import db
from labgiga.models.token_blocklist import TokenBlocklist


class TokenRepo:
    @staticmethod
    def is_revoked(jti: str) -> bool:
        return db.session.query(TokenBlocklist.id).filter_by(jti=jti).scalar() is not None

    @staticmethod
    def revoke(jti: str, token_type: str, user_id: int | None):
        if TokenRepo.is_revoked(jti):
            return
        db.session.add(TokenBlocklist(jti=jti, token_type=token_type, user_id=user_id))
        db.session.commit()
