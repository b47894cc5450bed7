"""
Table mapping drafts and their execution against the backend.

Modules:
    model: MappingModel, the in-progress draft and its state machine
    joins: JoinBuilder, join list edits with derived ON-conditions
    coordinator: MappingExecutionCoordinator, mapping CRUD and execution

Usage:
    coordinator = MappingExecutionCoordinator(client)
    await coordinator.load_tables()
    draft = coordinator.new_draft()
    draft.set_name("Users")
    draft.set_source_table("users")
    draft.set_destination_table("customers")
    draft.add_column_mapping()
    draft.update_column_mapping(0, "source_column", "email")
    draft.update_column_mapping(0, "destination_column", "email")
    await coordinator.create(draft)
"""

__all__ = [
    "MappingModel",
    "JoinBuilder",
    "MappingExecutionCoordinator",
]
