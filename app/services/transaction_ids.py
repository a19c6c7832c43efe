import time
import uuid

from app.core.constants import TRANSACTION_ID_PREFIX


def generate_transaction_id() -> str:
    """Build a business identifier: TXN_<random hex>_<creation epoch seconds>."""
    return f"{TRANSACTION_ID_PREFIX}{uuid.uuid4().hex}_{int(time.time())}"
