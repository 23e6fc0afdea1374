# create.py: create the first admin account
from getpass import getpass
from fitwork import create_app
from fitwork.extensions import db
from fitwork.models.user import User


def main():
    app = create_app()
    with app.app_context():
        email = input("Admin email: ").strip().lower()
        name = input("Display name: ").strip()
        password = getpass("Password: ")

        if User.query.filter_by(email=email).first():
            print("User with that email already exists.")
            return

        user = User(display_name=name or email, email=email, role="admin", is_email_verified=True)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        print(f"Admin user {email} created successfully.")


if __name__ == "__main__":
    main()
