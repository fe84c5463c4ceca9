# Supabase table: students
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- first_name: text (not null)
- last_name: text (not null)
- date_of_birth: date (not null)
- level: integer (legacy numeric level, nullable)
- facility_id: uuid (foreign key to facilities.id, nullable)
- parent_id: uuid (foreign key to profiles.id, nullable)
- current_level_id: uuid (foreign key to levels.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

A student is owned twice: by its facility's staff and by its parent. The two
relations are independent.
"""
