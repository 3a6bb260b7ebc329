from src.lint_reviewer.models import ProposedComment, PullRequestEvent, Review


def test_review_payload_keeps_comment_order():
    review = Review(
        commit_id="abc",
        comments=(
            ProposedComment(body="second file", path="b.js", position=3),
            ProposedComment(body="first file", path="a.js", position=1),
        ),
    )

    assert review.to_payload() == {
        "commit_id": "abc",
        "event": "COMMENT",
        "comments": [
            {"path": "b.js", "position": 3, "body": "second file"},
            {"path": "a.js", "position": 1, "body": "first file"},
        ],
    }


def test_pull_request_event_ignores_unmodeled_fields():
    event = PullRequestEvent.model_validate(
        {
            "action": "synchronize",
            "number": 12,
            "sender": {"login": "dev"},
            "repository": {"name": "web", "full_name": "acme/web", "owner": {"login": "acme", "id": 1}},
            "pull_request": {"title": "Fix", "head": {"ref": "fix-nav", "sha": "f00d", "label": "acme:fix-nav"}},
        }
    )

    assert (event.repo, event.owner, event.branch, event.head_sha) == ("web", "acme", "fix-nav", "f00d")


def test_pull_request_event_without_owner():
    event = PullRequestEvent.model_validate(
        {
            "action": "opened",
            "number": 1,
            "repository": {"name": "web"},
            "pull_request": {"head": {"ref": "main", "sha": "abc"}},
        }
    )

    assert event.owner is None
