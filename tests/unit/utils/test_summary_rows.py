"""
Unit Tests for check your answers rows
"""
from checkin.utils.summary_rows import build_summary_rows, build_video_rows


def identity(key: str) -> str:
    return key


class TestBuildSummaryRows:
    """Test the answers summary list"""

    def test_full_answers(self, checkin_id: str):
        """Test every answered question gets a row in page order"""
        rows = build_summary_rows({
            'mentalHealth': 'NOT_GREAT',
            'assistance': ['ALCOHOL', 'MONEY'],
            'alcoholSupport': 'Drinking more',
            'callback': 'YES',
            'callbackDetails': 'My benefits',
        }, checkin_id, identity)

        assert [row['key']['text'] for row in rows] == [
            'checkAnswers.rows.mentalHealth.key',
            'checkAnswers.rows.assistance.key',
            'checkAnswers.rows.alcoholSupport.key',
            'checkAnswers.rows.callback.key',
            'checkAnswers.rows.callbackDetails.key',
        ]
        assert rows[0]['value']['text'] == 'Not great'
        assert rows[1]['value']['text'] == 'Alcohol, Money'
        assert rows[2]['value']['text'] == 'Drinking more'
        assert rows[3]['value']['text'] == 'Yes'

    def test_change_links_return_to_check_answers(self, checkin_id: str):
        """Test change links carry checkAnswers=true"""
        rows = build_summary_rows({'mentalHealth': 'WELL', 'callback': 'NO'}, checkin_id, identity)

        action = rows[0]['actions']['items'][0]
        assert action['href'] == f'/{checkin_id}/questions/mental-health?checkAnswers=true'
        assert action['text'] == 'common.change'
        assert action['visuallyHiddenText'] == 'checkAnswers.rows.mentalHealth.changeHidden'

    def test_callback_details_only_when_requested(self, checkin_id: str):
        """Test stale details are hidden when the answer is no"""
        rows = build_summary_rows({
            'mentalHealth': 'WELL',
            'assistance': 'NO_HELP',
            'callback': 'NO',
            'callbackDetails': 'left over',
        }, checkin_id, identity)

        assert len(rows) == 3
        assert rows[1]['value']['text'] == 'No, I do not need help'


class TestBuildVideoRows:
    """Test the video result row"""

    def test_match(self, checkin_id: str):
        """Test a confirmed match"""
        rows = build_video_rows('MATCH', checkin_id, identity)

        assert len(rows) == 1
        assert rows[0]['value']['text'] == 'checkAnswers.rows.videoCheck.match'
        assert rows[0]['actions']['items'][0]['href'] == f'/{checkin_id}/video/view?checkAnswers=true'

    def test_anything_else_is_no_match(self, checkin_id: str):
        """Test no match, no face and missing results"""
        for result in ('NO_MATCH', 'NO_FACE_DETECTED', ''):
            rows = build_video_rows(result, checkin_id, identity)
            assert rows[0]['value']['text'] == 'checkAnswers.rows.videoCheck.noMatch'
