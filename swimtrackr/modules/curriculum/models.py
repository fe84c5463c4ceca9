# Supabase tables: program_packages, levels, tasks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

program_packages:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- is_default: boolean (nullable)
- facility_id: uuid (foreign key to facilities.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

levels:
- id: uuid (primary key)
- program_package_id: uuid (foreign key to program_packages.id, nullable)
- name: text (not null)
- description: text (nullable)
- order_index: integer (not null) - position within the package, gaps allowed
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

tasks:
- id: uuid (primary key)
- level_id: uuid (foreign key to levels.id, nullable)
- name: text (not null)
- description: text (nullable)
- order_index: integer (not null) - position within the level, gaps allowed
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
