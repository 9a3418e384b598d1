import pytest

from digitalme.models.style import CodingStyle


@pytest.fixture
def three_sources(make_reading):
    return [
        make_reading("gmail", words=1000, tone="conversational"),
        make_reading("text", words=800, tone="professional"),
        make_reading("blog", words=1500, tone="professional"),
    ]


class TestBuildProfile:
    """Orchestrating the merge into a versioned profile."""

    def test_three_source_scenario(self, builder, three_sources):
        three = builder.build_profile(three_sources, "user-1")
        two = builder.build_profile(three_sources[:2], "user-1")

        assert three.writing.tone == "professional"
        assert [entry.type for entry in three.source_attribution["tone"].sources] == ["text", "blog"]
        assert three.confidence == 0.9
        assert two.confidence == 0.7
        assert three.confidence > two.confidence

    def test_empty_input_gives_default_profile(self, builder):
        profile = builder.build_profile([], "user-1")

        assert profile.version == 1
        assert profile.confidence == 0.30
        assert profile.writing.tone == "neutral"
        assert profile.writing.formality == "balanced"
        assert profile.writing.sentence_length == "medium"
        assert profile.writing.vocabulary == ["clear", "direct", "concise", "relatable"]
        assert profile.writing.avoidance == ["none"]
        assert profile.source_attribution == {}

    def test_invalid_sources_degrade_to_defaults(self, builder, make_reading):
        readings = [make_reading("gmail", words=5000, tone=None), make_reading("text", with_style=False)]
        merge = builder.merge_writing_styles(readings)
        profile = builder.build_profile(readings, "user-1")

        assert merge.sources_used == 0
        assert len(merge.diagnostics) == 2
        assert profile.confidence == 0.30
        assert profile.writing.tone == "neutral"

    def test_invalid_source_is_skipped_not_fatal(self, builder, make_reading):
        readings = [make_reading("gmail", words=800, tone="professional"), make_reading("blog", formality=None)]
        merge = builder.merge_writing_styles(readings)

        assert merge.sources_used == 1
        assert merge.writing.tone == "professional"
        assert len(merge.diagnostics) == 1

    def test_single_source_attribution_is_full(self, builder, make_reading):
        reading = make_reading("text", words=700, vocabulary=["warm", "precise"], avoidance=["emojis"])
        profile = builder.build_profile([reading], "user-1")

        for name in ("tone", "formality", "sentenceLength"):
            assert [(s.type, s.contribution) for s in profile.source_attribution[name].sources] == [("text", 100)]
        for name in ("vocabulary", "avoidance"):
            per_term = profile.source_attribution[name].sources
            assert all(entries[0].contribution == 100 for entries in per_term.values())
        assert profile.writing.avoidance == ["emojis"]

    def test_merge_exposes_diagnostics(self, builder, three_sources):
        merge = builder.merge_writing_styles(three_sources)

        assert merge.formality.average_score == pytest.approx(1.0)
        assert merge.avoidance.strategy == "none"
        assert merge.vocabulary.term_scores["clear"] == pytest.approx(1.0)

    def test_coding_style_from_first_code_reading(self, builder, make_reading):
        coding = CodingStyle(language="Python", framework="FastAPI", naming_convention="snake_case")
        readings = [
            make_reading("gmail", words=1000),
            make_reading("github", with_style=False, metrics={"lines_analyzed": 2500, "total_repos": 3}, coding=coding),
            make_reading("github", with_style=False, coding=CodingStyle(language="Go")),
        ]
        profile = builder.build_profile(readings, "user-1")

        assert profile.coding.language == "Python"
        assert profile.sample_count.code_lines == 2500
        assert profile.sample_count.repositories == 3
        # Code readings without a writing style are not writing sources
        assert profile.source_attribution["tone"].sources[0].contribution == 100
        # 0.5 from one writing source, +0.1 for 2500 code lines
        assert profile.confidence == 0.6

    def test_default_coding_style_without_code(self, builder, make_reading):
        profile = builder.build_profile([make_reading("gmail")], "user-1")
        assert profile.coding == CodingStyle()

    def test_sample_counts(self, builder, make_reading):
        readings = [
            make_reading("gmail", words=1000, metrics={"emails": 40}),
            make_reading("blog", words=1500, metrics={"total_posts": 6}),
            make_reading("text", words=800),
        ]
        counts = builder.build_profile(readings, "user-1").sample_count

        assert counts.text_words == 3300
        assert counts.emails == 40
        assert counts.articles == 6
        assert counts.conversation_words == 0


class TestRecalculateProfile:
    """Rebuilding after the source set changes."""

    def test_increments_version(self, builder, profile, three_sources):
        updated = builder.recalculate_profile(profile, three_sources)

        assert updated.version == profile.version + 1
        assert updated.previous_version == profile.version
        assert updated.id == profile.id
        assert updated.user_id == profile.user_id
        assert updated.writing.tone == "professional"

    def test_original_profile_untouched(self, builder, profile, three_sources):
        before = profile.model_dump()
        builder.recalculate_profile(profile, three_sources)
        assert profile.model_dump() == before

    def test_keeps_conversation_history(self, builder, profile, three_sources):
        learned = profile.model_copy(
            update={"sample_count": profile.sample_count.model_copy(update={"conversation_words": 900})}
        )
        updated = builder.recalculate_profile(learned, three_sources)
        assert updated.sample_count.conversation_words == 900


class TestPackageExports:
    """The profile package exposes its building blocks after the models are loaded."""

    def test_public_names(self):
        import digitalme.services.profile as profile_package

        for name in profile_package.__all__:
            assert hasattr(profile_package, name)
        assert profile_package.ProfileBuilder().build_profile([], "user-1").version == 1
