"""Initial schema with all tables, RLS policies and storage buckets.

Reference schema for the Supabase project. Targets a database that already
has Supabase's auth schema (auth.users, auth.uid()) and storage schema.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create profiles table (one row per auth identity)
    op.execute("""
        CREATE TABLE profiles (
            id UUID PRIMARY KEY REFERENCES auth.users(id) ON DELETE CASCADE,
            username TEXT UNIQUE,
            full_name TEXT,
            avatar_url TEXT,
            bio TEXT,
            updated_at TIMESTAMPTZ
        );
    """)

    # Every new auth identity gets a profiles row, so the profiles(id) foreign
    # keys below hold from the first post, reply or membership
    op.execute("""
        CREATE FUNCTION public.handle_new_user()
        RETURNS TRIGGER
        LANGUAGE plpgsql
        SECURITY DEFINER SET search_path = ''
        AS $$
        BEGIN
            INSERT INTO public.profiles (id, full_name)
            VALUES (NEW.id, NEW.raw_user_meta_data->>'full_name');
            RETURN NEW;
        END;
        $$;
    """)
    op.execute("""
        CREATE TRIGGER on_auth_user_created
        AFTER INSERT ON auth.users
        FOR EACH ROW EXECUTE FUNCTION public.handle_new_user();
    """)

    # Create posts table (user_id NULL for anonymous exposés)
    op.execute("""
        CREATE TABLE posts (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            created_at TIMESTAMPTZ DEFAULT now() NOT NULL,
            title TEXT NOT NULL,
            book_title TEXT NOT NULL,
            book_author TEXT,
            content TEXT NOT NULL,
            user_name TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT 'Fiction'
                CHECK (category IN ('Fiction', 'Non-Fiction', 'Poésie', 'Philosophie', 'Sciences', 'Histoire')),
            cover_url TEXT,
            user_id UUID REFERENCES profiles(id) ON DELETE SET NULL
        );
    """)

    # Create replies table (flat threads; parent_reply_id is kept but unused)
    op.execute("""
        CREATE TABLE replies (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            created_at TIMESTAMPTZ DEFAULT now() NOT NULL,
            post_id UUID NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            user_name TEXT NOT NULL,
            content TEXT NOT NULL,
            quoted_text TEXT,
            parent_reply_id UUID REFERENCES replies(id) ON DELETE SET NULL
        );
    """)

    # Create circles, circle_members and circle_readings
    op.execute("""
        CREATE TABLE circles (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            created_at TIMESTAMPTZ DEFAULT now() NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            theme TEXT,
            is_private BOOLEAN DEFAULT false NOT NULL,
            cover_url TEXT,
            creator_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE
        );
    """)

    op.execute("""
        CREATE TABLE circle_members (
            circle_id UUID NOT NULL REFERENCES circles(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            joined_at TIMESTAMPTZ DEFAULT now() NOT NULL,
            PRIMARY KEY (circle_id, user_id)
        );
    """)

    op.execute("""
        CREATE TABLE circle_readings (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            circle_id UUID NOT NULL REFERENCES circles(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ DEFAULT now() NOT NULL,
            book_title TEXT NOT NULL,
            book_author TEXT,
            end_date DATE
        );
    """)

    # Indexes
    op.execute("CREATE INDEX idx_posts_created_at ON posts(created_at DESC);")
    op.execute("CREATE INDEX idx_posts_user_id ON posts(user_id);")
    op.execute("CREATE INDEX idx_replies_post_id ON replies(post_id, created_at);")
    op.execute("CREATE INDEX idx_circle_members_user_id ON circle_members(user_id);")
    op.execute("CREATE INDEX idx_circle_readings_circle_id ON circle_readings(circle_id, created_at DESC);")

    # Enable RLS
    for table in ("profiles", "posts", "replies", "circles", "circle_members", "circle_readings"):
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")

    # Profiles: public read, own write
    op.execute("CREATE POLICY profiles_select_all ON profiles FOR SELECT USING (true);")
    op.execute("CREATE POLICY profiles_insert_own ON profiles FOR INSERT WITH CHECK (id = auth.uid());")
    op.execute("CREATE POLICY profiles_update_own ON profiles FOR UPDATE USING (id = auth.uid());")

    # Posts: public read, anyone may publish (anonymously or as themselves), owner edits
    op.execute("CREATE POLICY posts_select_all ON posts FOR SELECT USING (true);")
    op.execute("""
        CREATE POLICY posts_insert_any
        ON posts
        FOR INSERT
        WITH CHECK (user_id IS NULL OR user_id = auth.uid());
    """)
    op.execute("CREATE POLICY posts_update_own ON posts FOR UPDATE USING (user_id = auth.uid());")
    op.execute("CREATE POLICY posts_delete_own ON posts FOR DELETE USING (user_id = auth.uid());")

    # Replies: public read, signed-in users write their own
    op.execute("CREATE POLICY replies_select_all ON replies FOR SELECT USING (true);")
    op.execute("CREATE POLICY replies_insert_own ON replies FOR INSERT WITH CHECK (user_id = auth.uid());")
    op.execute("CREATE POLICY replies_update_own ON replies FOR UPDATE USING (user_id = auth.uid());")
    op.execute("CREATE POLICY replies_delete_own ON replies FOR DELETE USING (user_id = auth.uid());")

    # Circles: public read, founder creates
    op.execute("CREATE POLICY circles_select_all ON circles FOR SELECT USING (true);")
    op.execute("CREATE POLICY circles_insert_own ON circles FOR INSERT WITH CHECK (creator_id = auth.uid());")

    # Memberships: public read (counts, rosters), users join and leave themselves
    op.execute("CREATE POLICY circle_members_select_all ON circle_members FOR SELECT USING (true);")
    op.execute("""
        CREATE POLICY circle_members_insert_own
        ON circle_members
        FOR INSERT
        WITH CHECK (user_id = auth.uid());
    """)
    op.execute("""
        CREATE POLICY circle_members_delete_own
        ON circle_members
        FOR DELETE
        USING (user_id = auth.uid());
    """)

    # Readings: public read, only the circle's founder schedules
    op.execute("CREATE POLICY circle_readings_select_all ON circle_readings FOR SELECT USING (true);")
    for action, clause in (
        ("insert", "WITH CHECK"),
        ("update", "USING"),
        ("delete", "USING"),
    ):
        op.execute(f"""
            CREATE POLICY circle_readings_{action}_creator
            ON circle_readings
            FOR {action.upper()}
            {clause} (
                circle_id IN (SELECT id FROM circles WHERE creator_id = auth.uid())
            );
        """)

    # Public buckets for covers and avatars
    op.execute("""
        INSERT INTO storage.buckets (id, name, public)
        VALUES ('covers', 'covers', true), ('avatars', 'avatars', true)
        ON CONFLICT (id) DO NOTHING;
    """)
    op.execute("""
        CREATE POLICY images_public_read
        ON storage.objects
        FOR SELECT
        USING (bucket_id IN ('covers', 'avatars'));
    """)
    op.execute("""
        CREATE POLICY images_upload
        ON storage.objects
        FOR INSERT
        WITH CHECK (bucket_id IN ('covers', 'avatars'));
    """)


def downgrade():
    op.execute("DROP TRIGGER IF EXISTS on_auth_user_created ON auth.users;")
    op.execute("DROP FUNCTION IF EXISTS public.handle_new_user();")
    op.execute("DROP POLICY IF EXISTS images_upload ON storage.objects;")
    op.execute("DROP POLICY IF EXISTS images_public_read ON storage.objects;")
    op.execute("DROP TABLE IF EXISTS circle_readings CASCADE;")
    op.execute("DROP TABLE IF EXISTS circle_members CASCADE;")
    op.execute("DROP TABLE IF EXISTS circles CASCADE;")
    op.execute("DROP TABLE IF EXISTS replies CASCADE;")
    op.execute("DROP TABLE IF EXISTS posts CASCADE;")
    op.execute("DROP TABLE IF EXISTS profiles CASCADE;")
