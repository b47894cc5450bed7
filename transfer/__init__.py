"""
Bulk table transfer tracking.

    coordinator = BulkTransferCoordinator(client)
    await coordinator.load_source_tables()
    coordinator.select_all()
    await coordinator.start()
"""
