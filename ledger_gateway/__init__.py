"""
Development marketplace ledger: a local stand-in for the delivery contract.
"""
