"""
High-level use cases for the task API.

Each service module orchestrates repositories to implement business rules
(create a task, soft-delete a subtask, sign a user in, ...). Routers call
these services instead of touching the database session directly.
"""
