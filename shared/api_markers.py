# shared/api_markers.py
"""
API 문서화용 마커 클래스들

이 모듈은 @extend_schema에서 사용되는 빈 시리얼라이저들을 정의합니다.
주로 요청 바디가 없는 API 엔드포인트의 문서화에 사용됩니다.
"""
from rest_framework import serializers


class EmptyRequestSerializer(serializers.Serializer):
    """
    요청 바디가 없는 API용 시리얼라이저

    사용 예시:
    @extend_schema(
        request=EmptyRequestSerializer,
        responses={200: RunChecksResultSerializer},
    )
    def post(self, request):
        # 요청 바디 없이 스케줄러 1회 실행
        ...
    """
    pass


class ErrorResponseSerializer(serializers.Serializer):
    """
    고객용 API 오류 응답 ({"error": ..., "retry_after": ...})
    """
    error = serializers.CharField()
    retry_after = serializers.IntegerField(required=False)
