from billshare.handlers.basic import basic_router
from billshare.handlers.drafts import drafts_router
from billshare.handlers.ledger import ledger_router

__all__ = ["basic_router", "drafts_router", "ledger_router"]
