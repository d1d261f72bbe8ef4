"""Quiz question seed data."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import QuizQuestion
from finquest.db.upsert import insert_for

logger = logging.getLogger(__name__)

_QUESTION_NAMESPACE = uuid.UUID("9a7f1c2e-4b3d-4e8a-9f61-2d5c8b0e7a14")


def question_id(question: str) -> uuid.UUID:
    """Stable id so reseeding never duplicates a question."""
    return uuid.uuid5(_QUESTION_NAMESPACE, question)


QUIZ_SEED_DATA: list[dict] = [
    {
        "topic": "budgeting",
        "difficulty": "beginner",
        "question": "What percentage of income should go to needs in the 50/30/20 rule?",
        "options": ["40%", "50%", "60%", "70%"],
        "correct_answer": "50%",
        "explanation": "The 50/30/20 rule suggests 50% for needs, 30% for wants, and 20% for savings and debt repayment.",
    },
    {
        "topic": "budgeting",
        "difficulty": "beginner",
        "question": "Which is an example of a fixed expense?",
        "options": ["Groceries", "Entertainment", "Rent", "Dining out"],
        "correct_answer": "Rent",
        "explanation": "Rent stays the same each month. Groceries and entertainment vary.",
    },
    {
        "topic": "budgeting",
        "difficulty": "beginner",
        "question": "What is the first step in creating a budget?",
        "options": ["Cut expenses", "Calculate income", "Open savings account", "Pay off debt"],
        "correct_answer": "Calculate income",
        "explanation": "Before planning expenses, you need to know how much money you have coming in.",
    },
    {
        "topic": "saving",
        "difficulty": "beginner",
        "question": "How many months of expenses should an emergency fund cover?",
        "options": ["1-2 months", "3-6 months", "9-12 months", "24 months"],
        "correct_answer": "3-6 months",
        "explanation": "Financial experts recommend saving 3-6 months of living expenses for emergencies.",
    },
    {
        "topic": "saving",
        "difficulty": "intermediate",
        "question": "What is compound interest?",
        "options": [
            "Interest on principal only",
            "Interest on principal and accumulated interest",
            "A type of savings account",
            "A penalty fee",
        ],
        "correct_answer": "Interest on principal and accumulated interest",
        "explanation": "You earn interest on both your initial deposit and the interest that accumulates over time.",
    },
    {
        "topic": "credit",
        "difficulty": "intermediate",
        "question": "What is a good credit score range?",
        "options": ["300-579", "580-669", "670-739", "740-850"],
        "correct_answer": "740-850",
        "explanation": "Credit scores range from 300-850. A score of 740+ is considered very good to excellent.",
    },
    {
        "topic": "credit",
        "difficulty": "intermediate",
        "question": "Which factor has the biggest impact on your credit score?",
        "options": ["Credit age", "Payment history", "Credit inquiries", "Credit mix"],
        "correct_answer": "Payment history",
        "explanation": "Payment history accounts for about 35% of your credit score.",
    },
    {
        "topic": "investing",
        "difficulty": "intermediate",
        "question": "What is diversification in investing?",
        "options": [
            "Buying only stocks",
            "Spreading investments across different assets",
            "Investing in one company",
            "Day trading",
        ],
        "correct_answer": "Spreading investments across different assets",
        "explanation": "Spreading money across different types of investments reduces risk.",
    },
    {
        "topic": "investing",
        "difficulty": "advanced",
        "question": "What does P/E ratio stand for?",
        "options": ["Profit and Earnings", "Price-to-Earnings", "Principal Equity", "Periodic Evaluation"],
        "correct_answer": "Price-to-Earnings",
        "explanation": "P/E compares a company's stock price to its earnings per share.",
    },
    {
        "topic": "general",
        "difficulty": "beginner",
        "question": "What is net income?",
        "options": ["Income before taxes", "Income after taxes and deductions", "Total salary", "Investment returns"],
        "correct_answer": "Income after taxes and deductions",
        "explanation": "Net income is what you take home after taxes and other deductions.",
    },
    {
        "topic": "general",
        "difficulty": "beginner",
        "question": "What is a financial goal?",
        "options": ["A wish", "A specific, measurable target", "A dream", "A budget category"],
        "correct_answer": "A specific, measurable target",
        "explanation": "Goals should be specific and measurable so you can track progress.",
    },
    {
        "topic": "general",
        "difficulty": "intermediate",
        "question": "What is inflation?",
        "options": ["Rise in prices over time", "Interest rate", "Stock market crash", "Currency exchange"],
        "correct_answer": "Rise in prices over time",
        "explanation": "Inflation is the general increase in prices and decrease in purchasing power over time.",
    },
    {
        "topic": "retirement",
        "difficulty": "advanced",
        "question": "What is a 401(k)?",
        "options": ["A type of mortgage", "Employer-sponsored retirement plan", "Credit card", "Savings account"],
        "correct_answer": "Employer-sponsored retirement plan",
        "explanation": "A 401(k) is an employer-sponsored retirement savings plan with tax advantages.",
    },
    {
        "topic": "retirement",
        "difficulty": "advanced",
        "question": "At what age can you withdraw from a 401(k) without penalty?",
        "options": ["55", "59.5", "62", "65"],
        "correct_answer": "59.5",
        "explanation": "Most retirement accounts allow penalty-free withdrawals from age 59½.",
    },
    {
        "topic": "tax",
        "difficulty": "advanced",
        "question": "What is a tax deduction?",
        "options": ["Money the government owes you", "Expense that reduces taxable income", "A type of credit", "A penalty"],
        "correct_answer": "Expense that reduces taxable income",
        "explanation": "Deductions lower your taxable income, which can reduce the tax you owe.",
    },
]


async def seed_quiz_questions(db: AsyncSession) -> int:
    """Insert missing seed questions."""
    for data in QUIZ_SEED_DATA:
        stmt = insert_for(db, QuizQuestion).values(id=question_id(data["question"]), **data)
        await db.execute(stmt.on_conflict_do_nothing(index_elements=["id"]))

    await db.commit()
    logger.info("Seeded %d quiz questions", len(QUIZ_SEED_DATA))
    return len(QUIZ_SEED_DATA)
