# Supabase Auth
# Identities live in Supabase's auth.users table; the application role and
# facility live in the profiles table (see modules/profiles/models.py).

"""
Supabase Auth calls used here:
- auth.sign_up() - Register a parent account (a profiles row with role 'parent' is written alongside)
- auth.sign_in_with_password() - Password login
- auth.sign_in_with_otp() / auth.verify_otp() - Magic link and one-time code login
- auth.exchange_code_for_session() - Callback for magic links and OAuth providers
- auth.reset_password_for_email() - Password reset email
- auth.get_user() - Resolve a session token (core/dependencies.py)
- auth.sign_out() - Logout

The access token is returned in the response body and also set as the
`sb-access-token` cookie so browser requests authenticate without a header.
"""
