# Supabase table: student_progress
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

student_progress:
- id: uuid (primary key)
- student_id: uuid (foreign key to students.id)
- task_id: uuid (foreign key to tasks.id)
- status: text (not null) - values: not_started, in_progress, completed
- notes: text (nullable)
- evaluated_by: uuid (foreign key to profiles.id, nullable)
- evaluated_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- unique (student_id, task_id)
"""
