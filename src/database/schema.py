"""
Database schema - table definitions applied at startup
"""

import logging

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = [
    "CREATE EXTENSION IF NOT EXISTS pgcrypto",

    """
    CREATE TABLE IF NOT EXISTS teams (
        team_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        team_lead_id UUID,
        member_ids UUID[] NOT NULL DEFAULT '{}',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS members (
        member_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        phone TEXT NOT NULL DEFAULT '',
        date_joined TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        is_first_timer BOOLEAN NOT NULL DEFAULT FALSE,
        team_id UUID REFERENCES teams(team_id) ON DELETE SET NULL,
        is_team_lead BOOLEAN NOT NULL DEFAULT FALSE,
        is_admin BOOLEAN NOT NULL DEFAULT FALSE,
        avatar TEXT,
        address TEXT,
        date_of_birth DATE,
        wedding_anniversary DATE,
        marital_status TEXT NOT NULL DEFAULT 'single'
            CHECK (marital_status IN ('single', 'married', 'divorced')),
        emergency_contact JSONB,
        user_id UUID,
        community_ids UUID[] NOT NULL DEFAULT '{}',
        attendance_streak INTEGER NOT NULL DEFAULT 0,
        total_attendance INTEGER NOT NULL DEFAULT 0,
        total_giving NUMERIC(14, 2) NOT NULL DEFAULT 0,
        last_activity_date TIMESTAMPTZ,
        skills TEXT[] NOT NULL DEFAULT '{}',
        interests TEXT[] NOT NULL DEFAULT '{}',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS users (
        user_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'member'
            CHECK (role IN ('super_admin', 'admin', 'team_leader', 'member')),
        permissions TEXT[] NOT NULL DEFAULT '{}',
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        member_id UUID,
        team_ids UUID[] NOT NULL DEFAULT '{}',
        avatar TEXT,
        login_attempts INTEGER NOT NULL DEFAULT 0,
        lockout_until TIMESTAMPTZ,
        last_login TIMESTAMPTZ,
        reset_password_token TEXT,
        reset_password_token_expiry TIMESTAMPTZ,
        must_change_password BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS tasks (
        task_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        team_id UUID NOT NULL REFERENCES teams(team_id) ON DELETE CASCADE,
        assignee_id UUID REFERENCES members(member_id) ON DELETE SET NULL,
        creator_id UUID NOT NULL,
        status TEXT NOT NULL DEFAULT 'open'
            CHECK (status IN ('open', 'assigned', 'in-progress', 'completed', 'cancelled')),
        priority TEXT NOT NULL DEFAULT 'medium'
            CHECK (priority IN ('low', 'medium', 'high', 'urgent')),
        due_date TIMESTAMPTZ,
        completed_at TIMESTAMPTZ,
        pickup_date TIMESTAMPTZ,
        tags TEXT[] NOT NULL DEFAULT '{}',
        is_public BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS communities (
        community_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name TEXT NOT NULL,
        description TEXT NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('team', 'life-group', 'ministry', 'custom')),
        leader_id UUID NOT NULL,
        member_ids UUID[] NOT NULL DEFAULT '{}',
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        is_private BOOLEAN NOT NULL DEFAULT FALSE,
        invite_only BOOLEAN NOT NULL DEFAULT FALSE,
        meeting_schedule TEXT,
        cover_image TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS community_posts (
        post_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        community_id UUID NOT NULL REFERENCES communities(community_id) ON DELETE CASCADE,
        author_id UUID NOT NULL,
        content TEXT NOT NULL,
        image_url TEXT,
        likes UUID[] NOT NULL DEFAULT '{}',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS events (
        event_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        date TIMESTAMPTZ NOT NULL,
        end_date TIMESTAMPTZ,
        location TEXT NOT NULL DEFAULT '',
        capacity INTEGER,
        is_recurring BOOLEAN NOT NULL DEFAULT FALSE,
        recurring_type TEXT CHECK (recurring_type IN ('weekly', 'monthly', 'yearly')),
        banner_image TEXT,
        allow_self_attendance BOOLEAN NOT NULL DEFAULT TRUE,
        community_id UUID REFERENCES communities(community_id) ON DELETE SET NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS attendance_records (
        record_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        member_id UUID NOT NULL REFERENCES members(member_id) ON DELETE CASCADE,
        event_id UUID NOT NULL REFERENCES events(event_id) ON DELETE CASCADE,
        date TIMESTAMPTZ NOT NULL,
        status TEXT NOT NULL CHECK (status IN ('present', 'absent', 'excused')),
        checked_in_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        notes TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS givings (
        giving_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        member_id UUID NOT NULL REFERENCES members(member_id) ON DELETE CASCADE,
        amount NUMERIC(14, 2) NOT NULL CHECK (amount > 0),
        currency TEXT NOT NULL DEFAULT 'NGN',
        method TEXT NOT NULL
            CHECK (method IN ('cash', 'card', 'bank_transfer', 'mobile_money', 'other')),
        category TEXT NOT NULL
            CHECK (category IN ('tithe', 'offering', 'special_offering', 'building_fund', 'missions', 'other')),
        description TEXT,
        date TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        is_recurring BOOLEAN NOT NULL DEFAULT FALSE,
        recurring_frequency TEXT CHECK (recurring_frequency IN ('weekly', 'monthly', 'yearly')),
        payment_reference TEXT UNIQUE,
        payment_status TEXT NOT NULL DEFAULT 'completed'
            CHECK (payment_status IN ('completed', 'pending', 'failed')),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS blog_posts (
        post_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        excerpt TEXT NOT NULL,
        author TEXT NOT NULL,
        published_at TIMESTAMPTZ,
        is_draft BOOLEAN NOT NULL DEFAULT TRUE,
        featured_image TEXT,
        tags TEXT[] NOT NULL DEFAULT '{}',
        slug TEXT NOT NULL UNIQUE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS comments (
        comment_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        content TEXT NOT NULL,
        author_id UUID NOT NULL,
        target_type TEXT NOT NULL
            CHECK (target_type IN ('event', 'blog', 'gallery', 'announcement', 'community_post', 'media')),
        target_id UUID NOT NULL,
        parent_comment_id UUID REFERENCES comments(comment_id) ON DELETE CASCADE,
        is_approved BOOLEAN NOT NULL DEFAULT TRUE,
        likes UUID[] NOT NULL DEFAULT '{}',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS gallery_folders (
        folder_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name TEXT NOT NULL,
        description TEXT,
        cover_image TEXT,
        event_id UUID REFERENCES events(event_id) ON DELETE SET NULL,
        created_by UUID,
        is_public BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS media_files (
        file_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        folder_id UUID REFERENCES gallery_folders(folder_id) ON DELETE SET NULL,
        title TEXT NOT NULL,
        description TEXT,
        file_key TEXT NOT NULL UNIQUE,
        url TEXT NOT NULL,
        file_type TEXT NOT NULL
            CHECK (file_type IN ('image', 'video', 'audio', 'document', 'other')),
        content_type TEXT NOT NULL,
        size_bytes BIGINT NOT NULL DEFAULT 0,
        category TEXT NOT NULL DEFAULT 'general',
        tags TEXT[] NOT NULL DEFAULT '{}',
        uploaded_by UUID,
        is_public BOOLEAN NOT NULL DEFAULT TRUE,
        likes UUID[] NOT NULL DEFAULT '{}',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS forms (
        form_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        type TEXT NOT NULL DEFAULT 'custom'
            CHECK (type IN ('baby_dedication', 'prayer_request', 'business_dedication', 'custom')),
        fields JSONB NOT NULL DEFAULT '[]',
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        requires_approval BOOLEAN NOT NULL DEFAULT FALSE,
        created_by UUID,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS form_submissions (
        submission_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        form_id UUID NOT NULL REFERENCES forms(form_id) ON DELETE CASCADE,
        submitter_id UUID,
        submitter_name TEXT,
        submitter_email TEXT,
        responses JSONB NOT NULL DEFAULT '{}',
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'approved', 'rejected', 'completed')),
        submitted_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        processed_at TIMESTAMPTZ,
        processed_by UUID,
        notes TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS anniversaries (
        anniversary_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        member_id UUID NOT NULL REFERENCES members(member_id) ON DELETE CASCADE,
        type TEXT NOT NULL CHECK (type IN ('birthday', 'wedding')),
        date DATE NOT NULL,
        recurring BOOLEAN NOT NULL DEFAULT TRUE,
        notes TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        UNIQUE (member_id, type)
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS user_activities (
        activity_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        member_id UUID NOT NULL REFERENCES members(member_id) ON DELETE CASCADE,
        activity_type TEXT NOT NULL
            CHECK (activity_type IN ('login', 'event_attendance', 'team_joined',
                                     'task_completed', 'comment_posted', 'giving_made')),
        description TEXT NOT NULL,
        metadata JSONB NOT NULL DEFAULT '{}',
        timestamp TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,

    "CREATE INDEX IF NOT EXISTS idx_attendance_member_event ON attendance_records (member_id, event_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_givings_member_date ON givings (member_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_comments_target ON comments (target_type, target_id)",
    "CREATE INDEX IF NOT EXISTS idx_activities_member ON user_activities (member_id, timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_submissions_form ON form_submissions (form_id, submitted_at)",
    "ALTER TABLE media_files ADD COLUMN IF NOT EXISTS likes UUID[] NOT NULL DEFAULT '{}'",
    "CREATE INDEX IF NOT EXISTS idx_events_recurring_date ON events (is_recurring, date)",
]


async def ensure_schema(conn):
    """Create any missing tables and indexes"""
    async with conn.transaction():
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(statement)
    logger.info(f"Database schema verified ({len(SCHEMA_STATEMENTS)} statements)")
