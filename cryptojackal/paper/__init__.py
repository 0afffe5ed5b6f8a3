from .ledger import PaperLedger, DUST_THRESHOLD
