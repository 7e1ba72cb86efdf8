"""Tests for unified diff parsing."""

from diff_parser import changed_paths, parse_diff

SAMPLE_DIFF = """\
diff --git a/app/models/user.rb b/app/models/user.rb
index 1111111..2222222 100644
--- a/app/models/user.rb
+++ b/app/models/user.rb
@@ -1,2 +1,3 @@
 class User < ApplicationRecord
+  validates :name, presence: true
 end
diff --git a/old.js b/old.js
deleted file mode 100644
index 3333333..0000000
--- a/old.js
+++ /dev/null
@@ -1 +0,0 @@
-var x = 1;
diff --git a/src/app.js b/src/app.js
new file mode 100644
index 0000000..4444444
--- /dev/null
+++ b/src/app.js
@@ -0,0 +1 @@
+const y = 2;
"""


def test_parse_diff_statuses():
    files = parse_diff(SAMPLE_DIFF)

    assert [(f.filename, f.status) for f in files] == [
        ("app/models/user.rb", "modified"),
        ("old.js", "deleted"),
        ("src/app.js", "added"),
    ]


def test_changed_paths_in_diff_order():
    assert changed_paths(SAMPLE_DIFF) == ["app/models/user.rb", "src/app.js"]
    assert changed_paths(SAMPLE_DIFF, include_deletions=True) == [
        "app/models/user.rb",
        "old.js",
        "src/app.js",
    ]


def test_empty_diff():
    assert parse_diff("") == []
    assert changed_paths("") == []
