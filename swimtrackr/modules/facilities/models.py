# Supabase table: facilities
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- name: text (not null)
- contact_email: text (not null)
- phone: text (nullable)
- address: text (nullable)
- subscription_tier: text (not null, default: 'basic')
- stripe_customer_id: text (nullable)
- is_public: boolean (nullable)
- program_package_id: uuid (foreign key to program_packages.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
