"""Ledger services: pure computation engine plus its repository and facade.

Engine modules (money, records, rent_schedule_service, lease_balance_service,
charge_share_service, water_allocation_service, settlement_service) perform no
I/O. ledger_service wires them to a repository.
"""
