from dotenv import load_dotenv

from pinmap.config import settings
from pinmap.database import Base, engine, SessionLocal
from pinmap.models.location_update import LocationUpdate
from pinmap.models.user import User
from pinmap.services.auth_service import hash_password
from pinmap.services.coordinates import normalize_coordinates
from pinmap.services.location_service import record_location

# Coordinates are "<lng>, <lat>"
SAMPLE_USERS = [
    {
        "name": "John Doe",
        "email": "john.doe@pinmap.io",
        "password": "password123",
        "coordinates": "36.8219, -1.2921",
        "city": "Nairobi",
        "state": "Nairobi County",
        "country": "Kenya",
    },
    {
        "name": "Jane Smith",
        "email": "jane.smith@pinmap.io",
        "password": "password123",
        "coordinates": "-74.006, 40.7128",
        "city": "New York",
        "state": "New York",
        "country": "United States",
    },
    {
        "name": "Bob Johnson",
        "email": "bob.johnson@pinmap.io",
        "password": "password123",
        "coordinates": "-0.1278, 51.5074",
        "city": "London",
        "state": "England",
        "country": "United Kingdom",
    },
    {
        "name": "Alice Williams",
        "email": "alice.williams@pinmap.io",
        "password": "password123",
        "coordinates": "139.6503, 35.6762",
        "city": "Tokyo",
        "state": "Tokyo",
        "country": "Japan",
    },
    {
        "name": "Charlie Brown",
        "email": "charlie.brown@pinmap.io",
        "password": "password123",
        "coordinates": "151.2093, -33.8688",
        "city": "Sydney",
        "state": "New South Wales",
        "country": "Australia",
    },
    {
        "name": "Diana Prince",
        "email": "diana.prince@pinmap.io",
        "password": "password123",
        "coordinates": None,
    },
]

# Load environment variables
load_dotenv()

# Ensure all tables exist
Base.metadata.create_all(bind=engine)


def seed_admin(db):
    email = settings.SEED_ADMIN_EMAIL
    if db.query(User).filter(User.email == email).first():
        print(f"✔ Admin '{email}' already present, skipping.")
        return
    admin = User(
        name=settings.SEED_ADMIN_NAME,
        email=email,
        password=hash_password(settings.SEED_ADMIN_PASSWORD),
    )
    db.add(admin)
    db.commit()
    print(f"✔ Default admin user seeded: {email}")
    if email not in settings.ADMIN_EMAILS:
        print(f"⚠ {email} is not listed in ADMIN_EMAILS and will have user-level permissions.")


def seed_sample_users(db):
    created = 0
    for entry in SAMPLE_USERS:
        if db.query(User).filter(User.email == entry["email"]).first():
            continue

        raw = entry.get("coordinates")
        coordinates = normalize_coordinates(raw)
        if raw and coordinates is None:
            print(f"❌ Skipping '{entry['email']}': invalid coordinates {raw!r}")
            continue

        user = User(
            name=entry["name"],
            email=entry["email"],
            password=hash_password(entry["password"]),
        )
        db.add(user)
        db.flush()
        if coordinates:
            record_location(
                db,
                user,
                coordinates,
                entry.get("city"),
                entry.get("state"),
                entry.get("country"),
            )
        created += 1
        print(f"✔ Seeded user '{user.email}'")
    db.commit()
    history = db.query(LocationUpdate).count()
    print(f"✔ Sample users: {created} created, {history} history rows in total")


def run_seed():
    db = SessionLocal()
    try:
        seed_admin(db)
        if settings.SEED_SAMPLE_USERS:
            seed_sample_users(db)
    except Exception as e:
        db.rollback()
        print("❌ Seeding error:", e)
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
