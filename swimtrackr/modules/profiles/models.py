# Supabase tables: profiles, user_facilities
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (not null)
- full_name: text (nullable)
- role: text (not null, default: 'parent') - values: admin, manager, instructor, parent, facility_parent
- facility_id: uuid (foreign key to facilities.id, nullable)
- subscription_tier: text (nullable)
- subscription_status: text (nullable)
- invitation_status: text (nullable)
- invited_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

user_facilities:
- id: uuid (primary key)
- profile_id: uuid (foreign key to profiles.id)
- facility_id: uuid (foreign key to facilities.id)

Profiles are created at signup and never hard-deleted. Only an admin (or a
manager, for the roles it may assign) changes role/facility_id.
"""
