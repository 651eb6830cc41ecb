from .admin import AdminOperations
from .settlement import SettlementOperations


class DiceMasterEngine(AdminOperations, SettlementOperations):
    """All entry points of the engine.

    Each method is (state, context, input) -> EngineResult; queries take the
    state and return plain values.
    """
