import pytest

from app.core.exceptions import (
    DeadlinePassedError,
    IncompleteSubmissionError,
    ManagerEvaluationAlreadySubmittedError,
    PeerFeedbackAlreadySubmittedError,
    ReviewNotFoundError,
    SelfReviewAlreadySubmittedError,
    UnauthorizedReviewAccessError,
)
from app.models.identifiers import ReviewCycleId
from app.models.review_values import EngineerLevel, Narrative, PillarScores, ReviewStatus
from app.models.self_review import SelfReview
from app.models.user import UserRole
from app.schemas.reviews import (
    ManagerEvaluationSubmit,
    ManagerEvaluationUpdate,
    PeerFeedbackCreate,
    PillarScoresSchema,
    SelfReviewUpdate,
)
from app.services.manager_evaluation_service import ManagerEvaluationService
from app.services.peer_feedback_service import PeerFeedbackService, peer_feedback_status
from app.services.self_review_service import SelfReviewService


def _register_users(user_repo, *users):
    by_id = {user.id: user for user in users}
    user_repo.find_by_id.side_effect = lambda user_id: by_id.get(user_id)


def _scores(*values) -> PillarScoresSchema:
    return PillarScoresSchema.from_value(PillarScores(*values))


@pytest.fixture
def team(make_user):
    manager = make_user("manager@example.com", role=UserRole.MANAGER, level=EngineerLevel.MANAGER)
    return {
        "manager": manager,
        "alice": make_user("alice@example.com", level=EngineerLevel.SENIOR, manager=manager),
        "bob": make_user("bob@example.com", manager=manager),
        "outsider": make_user("outsider@example.com", role=UserRole.MANAGER),
    }


# --- Self review ---

class TestSelfReviewService:
    @pytest.fixture
    def service(self, cycle_repo, self_review_repo):
        return SelfReviewService(cycle_repo, self_review_repo)

    def _draft(self, cycle_id, user, narrative="Shipped the new onboarding flow"):
        return SelfReview.create(
            cycle_id=cycle_id, user_id=user.id, scores=PillarScores(3, 3, 3, 3, 3), narrative=Narrative(narrative)
        )

    @pytest.mark.asyncio
    async def test_first_access_creates_draft(self, service, cycle_repo, self_review_repo, make_cycle, team):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle

        review = await service.get_my_self_review(cycle.id, team["alice"].id)

        assert review.status == ReviewStatus.DRAFT
        assert review.scores == PillarScores.zero()
        self_review_repo.save.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_cycle(self, service, self_review_repo, team):
        with pytest.raises(ReviewNotFoundError):
            await service.get_my_self_review(ReviewCycleId.generate(), team["alice"].id)
        self_review_repo.find_by_user_and_cycle.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_applies_present_fields(self, service, cycle_repo, self_review_repo, make_cycle, team):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        self_review_repo.find_by_user_and_cycle.return_value = self._draft(cycle.id, team["alice"])

        review = await service.update_self_review(
            cycle.id, team["alice"].id, SelfReviewUpdate(scores=_scores(4, 4, 3, 3, 2))
        )

        assert review.scores == PillarScores(4, 4, 3, 3, 2)
        assert review.narrative.text == "Shipped the new onboarding flow"

    @pytest.mark.asyncio
    async def test_update_after_deadline(self, service, cycle_repo, self_review_repo, make_cycle, team):
        cycle = make_cycle(offset_days=-60)
        cycle_repo.find_by_id.return_value = cycle

        with pytest.raises(DeadlinePassedError):
            await service.update_self_review(cycle.id, team["alice"].id, SelfReviewUpdate(narrative="late"))
        self_review_repo.find_by_user_and_cycle.assert_not_called()

    @pytest.mark.asyncio
    async def test_submit(self, service, cycle_repo, self_review_repo, make_cycle, team):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        self_review_repo.find_by_user_and_cycle.return_value = self._draft(cycle.id, team["alice"])

        review = await service.submit_self_review(cycle.id, team["alice"].id)

        assert review.is_submitted
        self_review_repo.save.assert_awaited_once_with(review)

    @pytest.mark.asyncio
    async def test_submit_with_blank_narrative_is_rejected(
        self, service, cycle_repo, self_review_repo, make_cycle, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        draft = self._draft(cycle.id, team["alice"], narrative="   ")
        self_review_repo.find_by_user_and_cycle.return_value = draft

        with pytest.raises(IncompleteSubmissionError, match="Narrative is required"):
            await service.submit_self_review(cycle.id, team["alice"].id)

        assert draft.status == ReviewStatus.DRAFT
        self_review_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_submit_twice(self, service, cycle_repo, self_review_repo, make_cycle, team):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        review = self._draft(cycle.id, team["alice"])
        review.submit()
        self_review_repo.find_by_user_and_cycle.return_value = review

        with pytest.raises(SelfReviewAlreadySubmittedError):
            await service.submit_self_review(cycle.id, team["alice"].id)


# --- Peer feedback ---

class TestPeerFeedbackService:
    @pytest.fixture
    def service(self, cycle_repo, user_repo, peer_feedback_repo):
        return PeerFeedbackService(cycle_repo, user_repo, peer_feedback_repo)

    def _request(self, reviewee, **kwargs):
        return PeerFeedbackCreate(reviewee_id=str(reviewee.id), scores=_scores(3, 2, 3, 2, 3), **kwargs)

    @pytest.mark.asyncio
    async def test_submit(self, service, cycle_repo, user_repo, peer_feedback_repo, make_cycle, team):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())

        feedback = await service.submit_peer_feedback(
            cycle.id, team["bob"].id, self._request(team["alice"], strengths="Clear design docs")
        )

        assert feedback.reviewee_id == team["alice"].id
        assert feedback.reviewer_id == team["bob"].id
        assert feedback.scores == PillarScores(3, 2, 3, 2, 3)
        peer_feedback_repo.save.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_self_feedback_rejected(self, service, cycle_repo, user_repo, peer_feedback_repo, make_cycle, team):
        cycle_repo.find_by_id.return_value = make_cycle()
        _register_users(user_repo, *team.values())

        with pytest.raises(UnauthorizedReviewAccessError):
            await service.submit_peer_feedback(ReviewCycleId.generate(), team["alice"].id, self._request(team["alice"]))
        peer_feedback_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_manager_cannot_leave_peer_feedback(
        self, service, cycle_repo, user_repo, peer_feedback_repo, make_cycle, team
    ):
        cycle_repo.find_by_id.return_value = make_cycle()
        _register_users(user_repo, *team.values())

        with pytest.raises(UnauthorizedReviewAccessError):
            await service.submit_peer_feedback(
                ReviewCycleId.generate(), team["manager"].id, self._request(team["alice"])
            )
        peer_feedback_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_rejected(
        self, service, cycle_repo, user_repo, peer_feedback_repo, make_cycle, make_peer_feedback, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())
        peer_feedback_repo.find_by_reviewer_and_cycle.return_value = [
            make_peer_feedback(team["alice"], team["bob"], cycle.id, PillarScores(2, 2, 2, 2, 2))
        ]

        with pytest.raises(PeerFeedbackAlreadySubmittedError):
            await service.submit_peer_feedback(cycle.id, team["bob"].id, self._request(team["alice"]))
        peer_feedback_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_deadline_checked_before_reviewee_lookup(self, service, cycle_repo, user_repo, make_cycle, team):
        cycle = make_cycle(offset_days=-60)
        cycle_repo.find_by_id.return_value = cycle

        with pytest.raises(DeadlinePassedError):
            await service.submit_peer_feedback(cycle.id, team["bob"].id, self._request(team["alice"]))
        user_repo.find_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_reviewee(self, service, cycle_repo, make_cycle, make_user, team):
        cycle_repo.find_by_id.return_value = make_cycle()
        ghost = make_user("ghost@example.com")

        with pytest.raises(ReviewNotFoundError, match="Employee not found"):
            await service.submit_peer_feedback(ReviewCycleId.generate(), team["bob"].id, self._request(ghost))

    @pytest.mark.asyncio
    async def test_aggregated_view_is_anonymous(
        self, service, cycle_repo, peer_feedback_repo, make_cycle, make_peer_feedback, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        peer_feedback_repo.find_by_reviewee_and_cycle.return_value = [
            make_peer_feedback(team["alice"], team["bob"], cycle.id, PillarScores(4, 4, 4, 4, 4), strengths="Mentor"),
            make_peer_feedback(team["alice"], team["outsider"], cycle.id, PillarScores(3, 3, 3, 3, 3)),
        ]

        result = await service.get_aggregated_peer_feedback(cycle.id, team["alice"].id)

        assert result.feedback_count == 2
        assert result.average_scores.project_impact == 4
        assert result.anonymized_comments.strengths == ["Mentor"]
        assert str(team["bob"].id) not in result.model_dump_json()

    @pytest.mark.asyncio
    async def test_aggregated_view_without_feedback(self, service, cycle_repo, make_cycle, team):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle

        result = await service.get_aggregated_peer_feedback(cycle.id, team["alice"].id)

        assert result.feedback_count == 0
        assert result.average_scores.to_value() == PillarScores.zero()

    def test_status_threshold(self):
        assert peer_feedback_status(2) == "PENDING"
        assert peer_feedback_status(3) == "COMPLETE"


# --- Manager evaluation ---

class TestManagerEvaluationService:
    @pytest.fixture
    def service(self, cycle_repo, user_repo, self_review_repo, peer_feedback_repo, evaluation_repo):
        return ManagerEvaluationService(cycle_repo, user_repo, self_review_repo, peer_feedback_repo, evaluation_repo)

    def _submit_request(self, narrative="Strong quarter, led two launches", **kwargs):
        return ManagerEvaluationSubmit(scores=_scores(4, 3, 4, 3, 2), narrative=narrative, **kwargs)

    @pytest.mark.asyncio
    async def test_unknown_cycle_stops_before_user_lookup(self, service, user_repo, team):
        with pytest.raises(ReviewNotFoundError):
            await service.start_manager_evaluation(ReviewCycleId.generate(), team["alice"].id, team["manager"].id)
        user_repo.find_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_deadline_checked_before_user_lookup(self, service, cycle_repo, user_repo, make_cycle, team):
        cycle_repo.find_by_id.return_value = make_cycle(offset_days=-60)

        with pytest.raises(DeadlinePassedError):
            await service.submit_manager_evaluation(
                ReviewCycleId.generate(), team["alice"].id, team["manager"].id, self._submit_request()
            )
        user_repo.find_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_manager(self, service, cycle_repo, user_repo, make_cycle, make_user, team):
        cycle_repo.find_by_id.return_value = make_cycle()
        _register_users(user_repo, team["alice"])

        with pytest.raises(UnauthorizedReviewAccessError, match="Manager not found"):
            await service.get_manager_evaluation(ReviewCycleId.generate(), team["alice"].id, team["manager"].id)

    @pytest.mark.asyncio
    async def test_not_direct_report(self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, team):
        cycle_repo.find_by_id.return_value = make_cycle()
        _register_users(user_repo, *team.values())

        with pytest.raises(UnauthorizedReviewAccessError):
            await service.start_manager_evaluation(ReviewCycleId.generate(), team["alice"].id, team["outsider"].id)
        evaluation_repo.find_by_employee_and_cycle.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_creates_draft_at_employee_level(
        self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())

        evaluation = await service.start_manager_evaluation(cycle.id, team["alice"].id, team["manager"].id)

        assert evaluation.status == ReviewStatus.DRAFT
        assert evaluation.scores == PillarScores.zero()
        assert evaluation.employee_level == EngineerLevel.SENIOR
        evaluation_repo.save.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_returns_existing(
        self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, make_evaluation, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())
        existing = make_evaluation(team["alice"], team["manager"], cycle.id, submitted=False)
        evaluation_repo.find_by_employee_and_cycle.return_value = existing

        assert await service.start_manager_evaluation(cycle.id, team["alice"].id, team["manager"].id) is existing
        evaluation_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_missing_evaluation(self, service, cycle_repo, user_repo, make_cycle, team):
        cycle_repo.find_by_id.return_value = make_cycle()
        _register_users(user_repo, *team.values())

        with pytest.raises(ReviewNotFoundError, match="Manager evaluation not found"):
            await service.update_manager_evaluation(
                ReviewCycleId.generate(), team["alice"].id, team["manager"].id, ManagerEvaluationUpdate(narrative="x")
            )

    @pytest.mark.asyncio
    async def test_update_applies_each_field(
        self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, make_evaluation, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())
        evaluation_repo.find_by_employee_and_cycle.return_value = make_evaluation(
            team["alice"], team["manager"], cycle.id, submitted=False
        )

        evaluation = await service.update_manager_evaluation(
            cycle.id,
            team["alice"].id,
            team["manager"].id,
            ManagerEvaluationUpdate(
                scores=_scores(4, 4, 4, 4, 4),
                growth_areas="Cross-team influence",
                proposed_level=EngineerLevel.LEAD,
            ),
        )

        assert evaluation.scores == PillarScores(4, 4, 4, 4, 4)
        assert evaluation.growth_areas == "Cross-team influence"
        assert evaluation.proposed_level == EngineerLevel.LEAD
        assert evaluation.narrative == "Consistently strong delivery"

    @pytest.mark.asyncio
    async def test_update_after_submission(
        self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, make_evaluation, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())
        evaluation_repo.find_by_employee_and_cycle.return_value = make_evaluation(
            team["alice"], team["manager"], cycle.id
        )

        with pytest.raises(ManagerEvaluationAlreadySubmittedError):
            await service.update_manager_evaluation(
                cycle.id, team["alice"].id, team["manager"].id, ManagerEvaluationUpdate(narrative="rewrite")
            )
        evaluation_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_submit_creates_and_submits(self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, team):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())

        evaluation = await service.submit_manager_evaluation(
            cycle.id, team["alice"].id, team["manager"].id, self._submit_request(proposed_level=EngineerLevel.LEAD)
        )

        assert evaluation.status == ReviewStatus.SUBMITTED
        assert evaluation.employee_level == EngineerLevel.SENIOR
        assert evaluation.proposed_level == EngineerLevel.LEAD
        evaluation_repo.save.assert_awaited_once_with(evaluation)

    @pytest.mark.asyncio
    async def test_submit_updates_existing_draft(
        self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, make_evaluation, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())
        draft = make_evaluation(team["alice"], team["manager"], cycle.id, submitted=False)
        evaluation_repo.find_by_employee_and_cycle.return_value = draft

        evaluation = await service.submit_manager_evaluation(
            cycle.id, team["alice"].id, team["manager"].id, self._submit_request()
        )

        assert evaluation is draft
        assert evaluation.scores == PillarScores(4, 3, 4, 3, 2)
        assert evaluation.narrative == "Strong quarter, led two launches"
        assert evaluation.is_submitted

    @pytest.mark.asyncio
    async def test_submit_existing_draft_keeps_strengths_and_plan(
        self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, make_evaluation, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())
        draft = make_evaluation(team["alice"], team["manager"], cycle.id, submitted=False)
        draft.update_development_plan("Shadow the on-call lead")
        evaluation_repo.find_by_employee_and_cycle.return_value = draft

        evaluation = await service.submit_manager_evaluation(
            cycle.id, team["alice"].id, team["manager"].id,
            self._submit_request(strengths="Owns the release train"),
        )

        assert evaluation.strengths == "Owns the release train"
        # an empty field in the submission leaves the draft value alone
        assert evaluation.development_plan == "Shadow the on-call lead"
        assert evaluation.is_submitted

    @pytest.mark.asyncio
    async def test_submit_without_narrative(self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, team):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())

        with pytest.raises(IncompleteSubmissionError):
            await service.submit_manager_evaluation(
                cycle.id, team["alice"].id, team["manager"].id, self._submit_request(narrative="  ")
            )
        evaluation_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_employee_review_includes_attributed_feedback(
        self, service, cycle_repo, user_repo, peer_feedback_repo, make_cycle, make_peer_feedback, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        _register_users(user_repo, *team.values())
        peer_feedback_repo.find_by_reviewee_and_cycle.return_value = [
            make_peer_feedback(team["alice"], team["bob"], cycle.id, PillarScores(3, 3, 3, 3, 3)),
        ]

        review = await service.get_employee_review(cycle.id, team["alice"].id, team["manager"].id)

        assert review.employee.email == "alice@example.com"
        assert review.self_review is None
        assert review.manager_evaluation is None
        assert review.peer_feedback.feedback_count == 1
        assert review.attributed_peer_feedback[0].reviewer_name == team["bob"].name

    @pytest.mark.asyncio
    async def test_team_reviews(
        self, service, cycle_repo, user_repo, evaluation_repo, make_cycle, make_evaluation, team
    ):
        cycle = make_cycle()
        cycle_repo.find_by_id.return_value = cycle
        user_repo.find_by_manager_id.return_value = [team["alice"], team["bob"]]
        alice_evaluation = make_evaluation(team["alice"], team["manager"], cycle.id)
        evaluation_repo.find_by_employee_and_cycle.side_effect = (
            lambda employee_id, cycle_id: alice_evaluation if employee_id == team["alice"].id else None
        )

        statuses = await service.get_team_reviews(cycle.id, team["manager"].id)

        assert [s.employee.email for s in statuses] == ["alice@example.com", "bob@example.com"]
        assert statuses[0].manager_evaluation_status == "SUBMITTED"
        assert statuses[0].has_submitted_evaluation
        assert statuses[1].manager_evaluation_status == "NOT_STARTED"
        assert statuses[1].self_review_status == "NOT_STARTED"
        assert statuses[1].peer_feedback_status == "PENDING"
