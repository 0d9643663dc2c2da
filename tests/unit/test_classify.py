"""Tests for commit classification."""

from __future__ import annotations

from changelog_py.config.models import CommitParserConfig, GitConfig
from changelog_py.core.classify import Outcome, classify, classify_commits, match_rule, prepare
from changelog_py.core.rules import FALLBACK_GROUP, RuleSet


def _rules(parsers: list[CommitParserConfig], **policies: object) -> RuleSet:
    return RuleSet.from_config(GitConfig(commit_parsers=parsers, **policies))


def _classify(commit, rules: RuleSet):
    (prepared,) = prepare(commit, rules)
    return classify(prepared, rules)


class TestMatchRule:
    """Tests for match_rule()."""

    def test_first_match_wins(self, make_commit):
        """When two rules match, the earlier one decides."""
        rules = _rules(
            [
                CommitParserConfig(message="^feat", group="Features"),
                CommitParserConfig(message="add", group="Additions"),
            ]
        )

        found = match_rule(make_commit("a", "feat: add X"), rules.parsers)

        assert found is not None
        assert found[0].group == "Features"

    def test_all_declared_predicates_must_match(self, make_commit):
        """A rule with message and body applies only if both match."""
        rules = _rules(
            [
                CommitParserConfig(message="^fix", body="security", group="Security"),
                CommitParserConfig(message="^fix", group="Bug Fixes"),
            ]
        )

        plain = make_commit("a", "fix: crash")
        secure = make_commit("b", "fix: crash", body="closes a security hole")

        assert match_rule(plain, rules.parsers)[0].group == "Bug Fixes"
        assert match_rule(secure, rules.parsers)[0].group == "Security"

    def test_missing_body_fails_body_predicate(self, make_commit):
        """A body predicate never matches a commit without a body."""
        rules = _rules([CommitParserConfig(body=".*", group="Any Body")])

        assert match_rule(make_commit("a", "fix: crash"), rules.parsers) is None

    def test_scope_predicate(self, make_commit):
        """Scope predicates match against the commit scope."""
        rules = _rules([CommitParserConfig(scope="^api$", group="API")])

        assert match_rule(make_commit("a", "x", scope="api"), rules.parsers) is not None
        assert match_rule(make_commit("b", "x", scope="cli"), rules.parsers) is None
        assert match_rule(make_commit("c", "x"), rules.parsers) is None


class TestClassify:
    """Tests for classify()."""

    def test_grouped(self, make_commit, rules):
        """A matching group rule attaches the group."""
        result = _classify(make_commit("a", "feat: add login"), rules)

        assert result.outcome is Outcome.GROUPED
        assert result.commit.group == "Features"
        assert result.kept

    def test_skipped(self, make_commit, rules):
        """A skip rule excludes the commit."""
        result = _classify(make_commit("a", "chore(deps): bump x"), rules)

        assert result.outcome is Outcome.SKIPPED
        assert not result.kept

    def test_skip_precedes_later_group_rule(self, make_commit, rules):
        """A later rule that would group the commit is never consulted."""
        result = _classify(make_commit("a", "chore(deps): bump x"), rules)

        assert result.rule.index == 3
        assert result.commit.group is None

    def test_skip_with_group_still_skips(self, make_commit):
        """skip takes precedence over a group on the same rule."""
        rules = _rules([CommitParserConfig(message="^chore", group="Chores", skip=True)])

        result = _classify(make_commit("a", "chore: tidy"), rules)

        assert not result.kept

    def test_protect_breaking_overrides_skip(self, make_commit):
        """A breaking commit survives a skip rule when protection is enabled."""
        rules = _rules(
            [CommitParserConfig(message="^chore", group="Chores", skip=True)],
            protect_breaking_commits=True,
        )

        result = _classify(make_commit("a", "chore!: drop python 3.10"), rules)

        assert result.kept
        assert result.protected
        assert result.commit.group == "Chores"

    def test_protect_breaking_uses_fallback_group(self, make_commit):
        """A protected commit without a rule group lands in the fallback group."""
        rules = _rules(
            [CommitParserConfig(message="^chore", skip=True)],
            protect_breaking_commits=True,
        )

        result = _classify(make_commit("a", "chore!: drop python 3.10"), rules)

        assert result.kept
        assert result.commit.group == FALLBACK_GROUP

    def test_protect_breaking_ignores_non_breaking(self, make_commit):
        """Protection only applies to breaking commits."""
        rules = _rules(
            [CommitParserConfig(message="^chore", skip=True)],
            protect_breaking_commits=True,
        )

        assert not _classify(make_commit("a", "chore: tidy"), rules).kept

    def test_breaking_skipped_without_protection(self, make_commit):
        """Without protection, breaking commits are skipped like any other."""
        rules = _rules([CommitParserConfig(message="^chore", skip=True)])

        assert not _classify(make_commit("a", "chore!: drop python 3.10"), rules).kept

    def test_scope_captured_from_message(self, make_commit):
        """A named 'scope' group in the message pattern sets the scope."""
        rules = _rules(
            [CommitParserConfig(message=r"^\[(?P<scope>\w+)\]", group="Legacy")],
            conventional_commits=False,
            filter_unconventional=False,
        )

        result = _classify(make_commit("a", "[buffer] fix rendering"), rules)

        assert result.commit.scope == "buffer"

    def test_default_scope(self, make_commit):
        """default_scope fills in a missing scope."""
        rules = _rules(
            [CommitParserConfig(message="^feat", group="Features", default_scope="core")]
        )

        assert _classify(make_commit("a", "feat: x"), rules).commit.scope == "core"
        assert _classify(make_commit("b", "feat(ui): x"), rules).commit.scope == "ui"

    def test_deterministic(self, make_commit, rules):
        """Classifying the same commit twice yields the same result."""
        commit = make_commit("a", "fix(auth): reject expired tokens")

        assert _classify(commit, rules) == _classify(commit, rules)


class TestFilters:
    """Tests for the unconventional and unmatched filters."""

    def test_unmatched_dropped_by_filter_unconventional(self, make_commit, rules):
        """Commits matching no rule are unconventional."""
        result = _classify(make_commit("a", "style: format"), rules)

        assert result.outcome is Outcome.UNMATCHED
        assert result.unconventional
        assert not result.kept

    def test_unmatched_passes_through_when_not_filtered(self, make_commit, default_parsers):
        """Without filters, unmatched commits are kept without a group."""
        rules = _rules(default_parsers, filter_unconventional=False)

        result = _classify(make_commit("a", "style: format"), rules)

        assert result.kept
        assert result.commit.group is None

    def test_filter_commits_drops_ungrouped(self, make_commit, default_parsers):
        """filter_commits drops commits without a group on its own."""
        rules = _rules(default_parsers, filter_unconventional=False, filter_commits=True)

        assert not _classify(make_commit("a", "style: format"), rules).kept

    def test_filters_are_independent(self, make_commit):
        """A non-conventional commit matched by a rule is only dropped by filter_unconventional."""
        parsers = [CommitParserConfig(message=r"^\[", group="Legacy")]
        commit = make_commit("a", "[gauge] add ratio")

        only_commits = _rules(parsers, filter_unconventional=False, filter_commits=True)
        only_unconventional = _rules(parsers, filter_unconventional=True, filter_commits=False)

        assert _classify(commit, only_commits).kept
        assert not _classify(commit, only_unconventional).kept


class TestClassifyCommits:
    """Tests for classify_commits()."""

    def test_worked_example(self, make_commit):
        """feat and fix are grouped; chore is dropped as unconventional."""
        rules = _rules(
            [
                CommitParserConfig(message="^feat", group="Features"),
                CommitParserConfig(message="^fix", group="BugFixes"),
            ],
            filter_unconventional=True,
        )
        commits = [
            make_commit("a", "feat: add X", 1),
            make_commit("b", "fix: bug", 2),
            make_commit("c", "chore: noop", 3),
        ]

        kept = classify_commits(commits, rules)

        assert [(c.id, c.group) for c in kept] == [("a", "Features"), ("b", "BugFixes")]

    def test_preprocessing_feeds_classification(self, make_commit):
        """Classification sees the rewritten message."""
        rules = RuleSet.from_config(
            GitConfig(
                commit_preprocessors=[
                    {"pattern": "(fix typos|Fix typos)", "replace": "fix: ${1}"},
                ],
                commit_parsers=[CommitParserConfig(message="^fix", group="Bug Fixes")],
            )
        )

        (commit,) = classify_commits([make_commit("a", "Fix typos")], rules)

        assert commit.group == "Bug Fixes"
        assert commit.message == "fix: Fix typos"

    def test_split_commits(self, make_commit):
        """With split_commits each line is classified on its own."""
        split_rules = RuleSet.from_config(
            GitConfig(
                split_commits=True,
                commit_parsers=[
                    CommitParserConfig(message="^feat", group="Features"),
                    CommitParserConfig(message="^fix", group="Bug Fixes"),
                ],
            )
        )

        kept = classify_commits([make_commit("a", "feat: one\nfix: two\nnoise")], split_rules)

        assert [c.group for c in kept] == ["Features", "Bug Fixes"]

    def test_skipped_never_returned(self, make_commit, rules):
        """Skipped commits never appear in the output."""
        commits = [
            make_commit("a", "chore(deps): bump a", 1),
            make_commit("b", "chore(deps)!: bump b", 2),
        ]

        assert classify_commits(commits, rules) == []
