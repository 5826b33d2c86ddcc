from .services import build_test_registry, get_test_registry

# 레지스트리 생성/주입 패키지
__all__ = [
    "build_test_registry",
    "get_test_registry",
]
