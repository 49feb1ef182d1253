"""Database schema for the zipindex store."""

SCHEMA = """
-- Projects table: one row per uploaded archive / ingestion job
CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    original_filename TEXT NOT NULL,
    archive_path TEXT NOT NULL,
    archive_size INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'uploaded'
        CHECK (status IN ('uploaded', 'processing', 'completed', 'failed')),
    error_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Indexed entries: every file and directory found in a project's archive.
-- (project_id, path) is deliberately not unique: malformed archives may
-- repeat a name and each occurrence is kept.
CREATE TABLE IF NOT EXISTS indexed_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL,
    path TEXT NOT NULL,
    name TEXT NOT NULL,
    extension TEXT,              -- NULL for directories
    size_bytes INTEGER,          -- NULL for directories
    preview TEXT,
    is_directory INTEGER NOT NULL DEFAULT 0,
    parent_directory TEXT,       -- NULL for top-level entries
    created_at TEXT NOT NULL,
    FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_projects_user ON projects(user_id);
CREATE INDEX IF NOT EXISTS idx_entries_project_path ON indexed_entries(project_id, path);
CREATE INDEX IF NOT EXISTS idx_entries_project_parent ON indexed_entries(project_id, parent_directory);
"""
