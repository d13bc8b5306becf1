"""Create the default administrator configured through DEFAULT_ADMIN_* variables."""

from app import create_app
from services.lifecycle import ensure_default_admin


def main() -> None:
    app = create_app()
    with app.app_context():
        result = ensure_default_admin()
        if result.created:
            print(f"Admin user created: {result.account.email}")
        elif result.account is not None:
            print(f"Admin user not created ({result.reason}): {result.account.email}")
        else:
            print(f"Admin user not created: {result.reason}")


if __name__ == "__main__":
    main()
