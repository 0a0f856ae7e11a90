"""
Contracts - Helpers for the external contracts the test environment uses.

Each module wraps one contract family's actions:
- system:   account creation, permissions, code/ABI deployment
- token:    eosio.token style create/issue/transfer
- dao:      DAO root, settings, periods, membership
- decide:   Telos Decide voting treasury and voters
- docgraph: document table queries
"""
