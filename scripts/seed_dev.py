from datetime import datetime, timezone

from brainquiz.db.engine import get_sessionmaker, make_engine
from brainquiz.logging_config import configure_logging
from brainquiz.models import Base, Prize, Question, User

EVERY_DAY = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]

# (prompt, options, correct, explanation, category, difficulty, points, country)
SAMPLE_QUESTIONS = [
    (
        "What is the capital city of Nigeria?",
        ["Lagos", "Abuja", "Kano", "Port Harcourt"],
        "Abuja",
        "Abuja has been the capital of Nigeria since 1991, replacing Lagos.",
        "general_knowledge",
        "easy",
        10,
        "Nigeria",
    ),
    (
        "Which is the largest continent in the world?",
        ["Africa", "Asia", "North America", "Europe"],
        "Asia",
        "Asia is the largest continent by both area and population.",
        "general_knowledge",
        "easy",
        10,
        "general",
    ),
    (
        "What is the smallest planet in our solar system?",
        ["Mars", "Venus", "Mercury", "Pluto"],
        "Mercury",
        "Mercury is the smallest planet in our solar system and closest to the Sun.",
        "science",
        "medium",
        15,
        "general",
    ),
    (
        "In which year did Nigeria gain independence?",
        ["1958", "1960", "1962", "1963"],
        "1960",
        "Nigeria gained independence from British colonial rule on October 1, 1960.",
        "history",
        "easy",
        10,
        "Nigeria",
    ),
    (
        "Who was the first military Head of State of Nigeria?",
        ["Yakubu Gowon", "Johnson Aguiyi-Ironsi", "Murtala Mohammed", "Olusegun Obasanjo"],
        "Johnson Aguiyi-Ironsi",
        "Major General Johnson Aguiyi-Ironsi became Nigeria's first military Head "
        "of State after the 1966 coup.",
        "history",
        "medium",
        15,
        "Nigeria",
    ),
    (
        "Which ancient wonder of the world was located in Egypt?",
        [
            "Hanging Gardens of Babylon",
            "Colossus of Rhodes",
            "Great Pyramid of Giza",
            "Lighthouse of Alexandria",
        ],
        "Great Pyramid of Giza",
        "The Great Pyramid of Giza is the only surviving ancient wonder of the world.",
        "history",
        "medium",
        15,
        "general",
    ),
    (
        "Which technology company owns WhatsApp?",
        ["Google", "Meta (Facebook)", "Microsoft", "Twitter"],
        "Meta (Facebook)",
        "Meta (formerly Facebook) acquired WhatsApp in 2014 for $19 billion.",
        "current_affairs",
        "easy",
        10,
        "general",
    ),
    (
        "What is the chemical symbol for gold?",
        ["Go", "Au", "Ag", "Gd"],
        "Au",
        "Au comes from the Latin word 'aurum' meaning gold.",
        "science",
        "medium",
        15,
        "general",
    ),
    (
        "How many chambers does a human heart have?",
        ["2", "3", "4", "5"],
        "4",
        "The human heart has four chambers: two atria and two ventricles.",
        "science",
        "easy",
        10,
        "general",
    ),
    (
        "Which Nigerian footballer is known as 'Jay-Jay'?",
        ["Nwankwo Kanu", "Austin Okocha", "Finidi George", "Rashidi Yekini"],
        "Austin Okocha",
        "Austin 'Jay-Jay' Okocha was famous for his skills and creativity.",
        "sports",
        "easy",
        10,
        "Nigeria",
    ),
    (
        "How many players are on a basketball team on the court at one time?",
        ["4", "5", "6", "7"],
        "5",
        "Each basketball team has 5 players on the court at any given time.",
        "sports",
        "easy",
        10,
        "general",
    ),
    (
        "Which streaming platform produced the series 'Stranger Things'?",
        ["HBO", "Netflix", "Amazon Prime", "Disney+"],
        "Netflix",
        "Stranger Things is a Netflix original series that premiered in 2016.",
        "entertainment",
        "easy",
        10,
        "general",
    ),
    (
        "What is the hardest natural substance on Earth?",
        ["Gold", "Iron", "Diamond", "Quartz"],
        "Diamond",
        "Diamond ranks 10 on the Mohs hardness scale.",
        "science",
        "hard",
        20,
        "general",
    ),
    (
        "Which treaty ended the First World War?",
        ["Treaty of Paris", "Treaty of Versailles", "Treaty of Ghent", "Treaty of Rome"],
        "Treaty of Versailles",
        "The Treaty of Versailles was signed in 1919.",
        "history",
        "hard",
        20,
        "general",
    ),
]


def _prizes(now: datetime) -> list[Prize]:
    return [
        Prize(
            name="Daily Cash Prize - ₦5,000",
            description="Win ₦5,000 cash for scoring 80% or above",
            value=5000,
            currency="NGN",
            prize_type="cash",
            category="daily",
            minimum_score=80,
            minimum_questions=8,
            total_quantity=5,
            distribution_days=EVERY_DAY,
            claim_instructions="Contact customer service with your claim code",
            terms_and_conditions="Prize must be claimed within 7 days. Valid ID required.",
            sponsor_name="Brain Teaser Quiz",
            sponsor_contact="support@brainquiz.com",
            priority=5,
            start_date=now,
        ),
        Prize(
            name="MTN Airtime - ₦1,000",
            description="₦1,000 airtime for any MTN number",
            value=1000,
            currency="NGN",
            prize_type="airtime",
            category="daily",
            minimum_score=70,
            minimum_questions=5,
            total_quantity=20,
            distribution_days=EVERY_DAY,
            claim_instructions="Airtime is sent to your registered number within 24 hours",
            sponsor_name="MTN Nigeria",
            sponsor_contact="180",
            priority=3,
            start_date=now,
        ),
        Prize(
            name="Data Bundle - 1GB",
            description="1GB data bundle for 30 days",
            value=500,
            currency="NGN",
            prize_type="data",
            category="daily",
            minimum_score=60,
            minimum_questions=5,
            total_quantity=50,
            distribution_days=EVERY_DAY,
            claim_instructions="Data will be credited to your number within 4 hours",
            sponsor_name="Brain Teaser Quiz",
            priority=2,
            start_date=now,
        ),
        Prize(
            name="Weekly Mega Prize - ₦50,000",
            description="Win ₦50,000 for being the top scorer of the week",
            value=50000,
            currency="NGN",
            prize_type="cash",
            category="weekly",
            minimum_score=90,
            minimum_questions=50,
            total_quantity=1,
            distribution_days=["sunday"],
            sponsor_name="Brain Teaser Quiz",
            priority=10,
            start_date=now,
        ),
        Prize(
            name="Consolation Prize - ₦200 Airtime",
            description="₦200 airtime for participating players",
            value=200,
            currency="NGN",
            prize_type="airtime",
            category="consolation",
            minimum_score=30,
            minimum_questions=3,
            total_quantity=100,
            distribution_time="20:00",
            distribution_days=EVERY_DAY,
            sponsor_name="Brain Teaser Quiz",
            priority=1,
            start_date=now,
        ),
    ]


def main() -> None:
    """Reset the development database and load sample questions and prizes."""
    logger = configure_logging()
    engine = make_engine()

    # SQLite cannot drop tables with live FK references unless checks are off.
    with engine.connect() as conn:
        if conn.dialect.name == "sqlite":
            conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        if conn.dialect.name == "sqlite":
            conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        conn.commit()

    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)
    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        session.add_all(
            Question(
                prompt=prompt,
                options=options,
                correct_answer=correct,
                explanation=explanation,
                category=category,
                difficulty=difficulty,
                points=points,
                country=country,
            )
            for prompt, options, correct, explanation, category, difficulty, points, country in SAMPLE_QUESTIONS
        )
        session.add_all(_prizes(now))
        session.add(User(phone_number="+2348030000001", name="Ada", is_verified=True))

    logger.info(
        f"Development database seeded with {len(SAMPLE_QUESTIONS)} questions and 5 prizes."
    )


if __name__ == "__main__":
    main()
