import argparse

from auth_service.challenge import PendingChallenge, utcnow
from auth_service.database import SessionLocal, init_db
from auth_service.store import UserStore


def show_user(phone: str) -> int:
    db = SessionLocal()
    try:
        user = UserStore.find_by_phone(db, phone)
        if not user:
            print(f"❌ No user with phone {phone}")
            return 1
        challenge = user.challenge
        print(f"id:        {user.id}")
        print(f"name:      {user.name}")
        print(f"phone:     {user.phone}")
        print(f"email:     {user.email or '-'}")
        print(f"verified:  {'yes' if user.is_verified else 'no'}")
        if isinstance(challenge, PendingChallenge):
            state = "expired" if challenge.is_expired(utcnow()) else "pending"
            print(f"challenge: {state} (expires {challenge.expiry:%Y-%m-%d %H:%M:%S} UTC)")
        else:
            print("challenge: none")
        if user.pending_phone:
            print(f"changing to: {user.pending_phone}")
        return 0
    finally:
        db.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="User administration for the learning backend")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("init-db", help="create database tables")
    show = commands.add_parser("show", help="print a user by phone number")
    show.add_argument("phone", type=str)
    args = parser.parse_args(argv)

    if args.command == "init-db":
        init_db()
        print("✅ Database tables checked/created.")
        return 0
    return show_user(args.phone)


if __name__ == "__main__":
    raise SystemExit(main())
