from labgiga.errors import ValidationError
from labgiga.repositories.user_repo import UserRepo
from labgiga.services.auth_service import AuthService

EDITABLE_FIELDS = {"name": "name", "nrp": "nrp", "studentCardUrl": "student_card_url"}


class UserService:
    @staticmethod
    def update_profile(user_id: int, data: dict):
        user = AuthService.get_user(user_id)

        for key, attr in EDITABLE_FIELDS.items():
            if key not in data:
                continue
            value = data[key]
            value = str(value).strip() if value is not None else None
            if attr == "name" and not value:
                raise ValidationError("name cannot be empty")
            setattr(user, attr, value or None)

        UserRepo.update()
        return user
