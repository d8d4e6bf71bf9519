import argparse

from app.core.config import settings
from app.core.security import hash_password
from app.db.session import SessionLocal
from app.models.user import UserRole
from app.services.phone import PhoneNormalizer
from app.services.user_store import UserStore


def main():
    parser = argparse.ArgumentParser(description="Create or promote an ADMIN user")
    parser.add_argument("--phone", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    args = parser.parse_args()

    validation = PhoneNormalizer(settings.PHONE_DEFAULT_COUNTRY_CODE).validate(args.phone)
    if not validation.is_valid:
        raise SystemExit(f"error: {validation.error}")

    db = SessionLocal()
    try:
        store = UserStore(db)
        user = store.find_by_field("phone", validation.formatted_number)
        if user:
            user = store.update(user.id, {"role": UserRole.ADMIN.value, "is_active": True, "is_phone_verified": True})
            print(f"ok: user {user.id} promoted to ADMIN")
            return
        user = store.create(
            first_name=args.first_name,
            last_name=args.last_name,
            email=args.email.strip().lower(),
            phone=validation.formatted_number,
            password_hash=hash_password(args.password, rounds=settings.BCRYPT_ROUNDS),
            role=UserRole.ADMIN.value,
            is_phone_verified=True,
            is_email_verified=True,
        )
        print(f"ok: admin {user.id} created")
    finally:
        db.close()


if __name__ == "__main__":
    main()
