# Task board: kanban task tracking with key-value persistence
#
# Components:
#   schema.py     - Data model (Task, Column, Priority, ValidationError)
#   blobstore.py  - Key-value blob backends (SQLite, in-memory)
#   store.py      - TaskStore: owns the task list, persists on every mutation
#   events.py     - Event bridge for form, drag-and-drop and delete actions
#   config.py     - YAML configuration
#   server.py     - Flask JSON API over a TaskStore
