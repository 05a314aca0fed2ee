
"""
Seed the learning module catalogue. Safe to run repeatedly.
"""
from heartspace.database import SessionLocal, engine, Base
from heartspace.models import Module

CATALOGUE = [
    dict(
        title="Welcome to HeartSpace",
        description="How the community works and how to take part.",
        content="Share artwork, join live sessions and go through the modules at your own pace.",
        order=1,
    ),
    dict(
        title="Breathing Basics",
        description="Simple breathwork to settle the nervous system.",
        content="Box breathing: inhale 4, hold 4, exhale 4, hold 4. Repeat for two minutes.",
        order=2,
    ),
    dict(
        title="Creative Expression",
        description="Using art as a way to process feelings.",
        content="Pick three colours that match your mood and fill a page without planning.",
        order=3,
    ),
    dict(
        title="Building Connection",
        description="Giving and receiving support in a group.",
        content="Leave a kind comment on someone else's artwork this week.",
        order=4,
    ),
]


def seed_modules(db):
    """Insert missing modules and refresh existing ones, matched on ``order``.

    Rows are updated in place; deleting them would cascade to user progress.
    Returns (created, updated).
    """
    existing = {m.order: m for m in db.query(Module).all()}
    created = 0
    for fields in CATALOGUE:
        module = existing.get(fields["order"])
        if module is None:
            db.add(Module(**fields))
            created += 1
        else:
            for key, value in fields.items():
                setattr(module, key, value)
    db.commit()
    return created, len(CATALOGUE) - created


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created, updated = seed_modules(db)
    finally:
        db.close()

    print("Database seeded successfully!")
    print(f"  - {created} learning modules added, {updated} updated")
