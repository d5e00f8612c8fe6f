"""
Placeholder rows for the demo dashboard.

Invoices reference customers by id, so every `customer_id` below must appear in CUSTOMERS.
"""

from __future__ import annotations

from db.records import CustomerRecord, InvoiceRecord, RevenueRecord, SeedFixtures, UserRecord


USERS: list[UserRecord] = [
    UserRecord(
        id="410544b2-4001-4271-9855-fec4b6a6442a",
        name="User",
        email="user@nextmail.com",
        password="123456",
    ),
]


CUSTOMERS: list[CustomerRecord] = [
    CustomerRecord(
        id="d6e15727-9fe1-4961-8c5b-ea44a9bd81aa",
        name="Evil Rabbit",
        email="evil@rabbit.com",
        image_url="/customers/evil-rabbit.png",
    ),
    CustomerRecord(
        id="3958dc9e-712f-4377-85e9-fec4b6a6442a",
        name="Delba de Oliveira",
        email="delba@oliveira.com",
        image_url="/customers/delba-de-oliveira.png",
    ),
    CustomerRecord(
        id="3958dc9e-742f-4377-85e9-fec4b6a6442a",
        name="Lee Robinson",
        email="lee@robinson.com",
        image_url="/customers/lee-robinson.png",
    ),
    CustomerRecord(
        id="76d65c26-f784-44a2-ac19-586678f7c2f2",
        name="Michael Novotny",
        email="michael@novotny.com",
        image_url="/customers/michael-novotny.png",
    ),
    CustomerRecord(
        id="cc27c14a-0acf-4f4a-a6c9-d45682c144b9",
        name="Amy Burns",
        email="amy@burns.com",
        image_url="/customers/amy-burns.png",
    ),
    CustomerRecord(
        id="13d07535-c59e-4157-a011-f8d2ef4e0cbb",
        name="Balazs Orban",
        email="balazs@orban.com",
        image_url="/customers/balazs-orban.png",
    ),
]


def _invoice(customer_idx: int, amount: int, status: str, day: str) -> InvoiceRecord:
    return InvoiceRecord(customer_id=CUSTOMERS[customer_idx].id, amount=amount, status=status, date=day)


INVOICES: list[InvoiceRecord] = [
    _invoice(0, 15795, "pending", "2022-12-06"),
    _invoice(1, 20348, "pending", "2022-11-14"),
    _invoice(4, 3040, "paid", "2022-10-29"),
    _invoice(3, 44800, "paid", "2023-09-10"),
    _invoice(5, 34577, "pending", "2023-08-05"),
    _invoice(2, 54246, "pending", "2023-07-16"),
    _invoice(0, 666, "pending", "2023-06-27"),
    _invoice(3, 32545, "paid", "2023-06-09"),
    _invoice(4, 1250, "paid", "2023-06-17"),
    _invoice(5, 8546, "paid", "2023-06-07"),
    _invoice(1, 500, "paid", "2023-08-19"),
    _invoice(5, 8945, "paid", "2023-06-03"),
    _invoice(2, 1000, "paid", "2022-06-05"),
]


REVENUE: list[RevenueRecord] = [
    RevenueRecord(month=month, revenue=amount)
    for month, amount in [
        ("Jan", 2000),
        ("Feb", 1800),
        ("Mar", 2200),
        ("Apr", 2500),
        ("May", 2300),
        ("Jun", 3200),
        ("Jul", 3500),
        ("Aug", 3700),
        ("Sep", 2500),
        ("Oct", 2800),
        ("Nov", 3000),
        ("Dec", 4800),
    ]
]


PLACEHOLDER_FIXTURES = SeedFixtures(users=USERS, customers=CUSTOMERS, invoices=INVOICES, revenue=REVENUE)
