# Supabase tables: sessions, session_students
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

sessions:
- id: uuid (primary key)
- name: text (not null)
- facility_id: uuid (foreign key to facilities.id, nullable)
- instructor_id: uuid (foreign key to profiles.id, nullable)
- start_time: timestamp (nullable)
- end_time: timestamp (nullable)
- status: text (nullable) - values: draft, scheduled, in-progress, completed, cancelled
- is_public: boolean (nullable)
- level: text (nullable) - free-text level label used by the session filters
- max_students: integer (not null, default: 10)
- program_package_id: uuid (foreign key to program_packages.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

session_students (roster, many-to-many):
- session_id: uuid (foreign key to sessions.id)
- student_id: uuid (foreign key to students.id)
- created_at: timestamp (default: now())
- primary key (session_id, student_id)
"""
