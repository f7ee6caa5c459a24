from __future__ import annotations

# Persisted layouts shared with the table store. Row 1 is always the header.
HEADER_ROW = 1
FIRST_DATA_ROW = 2

RECORD_WIDTH = 6

STAGING_HEADER = ("PART", "LOC", "CUSTM", "PRICE", "DATE", "DESCR")
CONFIG_HEADER = ("CODE", "DEST", "DEFAULT")
PRIMARY_HEADER = ("PART", "LOC", "CUSTM", "PRICE", "DATE", "DESCR")
SECONDARY_HEADER = ("PART", "LOC", "CUSTM", "PRICE")
LEDGER_HEADER = ("KEY", "WHEN", "DEST", "ROW")

# Column holding the classification key (CUSTM) inside a staged record.
CLASSIFICATION_INDEX = 2
# Column holding the source row number in the ledger.
LEDGER_ROW_COLUMN = 4

DEFAULT_FLAG = "TRUE"
