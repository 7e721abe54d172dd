from beanie import Document, Indexed, PydanticObjectId


class CreditBalance(Document):
    """Current platform credits per user; updated together with the transaction log."""
    user_id: Indexed(PydanticObjectId, unique=True)
    balance: float = 0
    earned: float = 0  # lifetime cashback
    pending: float = 0

    class Settings:
        name = "credit_balances"
