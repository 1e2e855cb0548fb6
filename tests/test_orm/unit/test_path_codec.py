"""路径编解码测试

测试 path_codec 的纯函数：
1. 编码与解码
2. 祖先 / 根 / 深度
3. 严格祖先判断（分隔符边界）
4. LIKE 模式与前缀重写
"""

import pytest

from ytree.exceptions import InvalidInputError, MalformedPathError, PrefixMismatchError
from ytree.orm.tree import path_codec


class TestEncodeDecode:
    """编码与解码"""

    def test_encode_ids(self):
        """测试编码 ID 序列"""
        assert path_codec.encode([7]) == "7"
        assert path_codec.encode([7, 9, 12]) == "7.9.12"
        assert path_codec.encode(iter(["a", "b"])) == "a.b"

    def test_encode_invalid_ids(self):
        """测试无法编码的 ID"""
        with pytest.raises(InvalidInputError):
            path_codec.encode([])
        with pytest.raises(InvalidInputError):
            path_codec.encode([1, None])
        with pytest.raises(InvalidInputError):
            path_codec.encode(["1.2"])
        with pytest.raises(InvalidInputError):
            path_codec.encode([""])

    def test_decode_path(self):
        """测试解码路径"""
        assert path_codec.decode("7") == [7]
        assert path_codec.decode("7.9.12") == [7, 9, 12]
        assert path_codec.decode("a.b", id_type=str) == ["a", "b"]

    @pytest.mark.parametrize("path", ["", "1..2", ".1", "1.", "1.x"])
    def test_decode_malformed(self, path):
        """测试畸形路径"""
        with pytest.raises(MalformedPathError):
            path_codec.decode(path)

    def test_decode_none(self):
        """测试空路径"""
        with pytest.raises(MalformedPathError):
            path_codec.decode(None)

    def test_malformed_error_keeps_cause(self):
        """测试转换失败时保留原始异常"""
        with pytest.raises(MalformedPathError) as exc_info:
            path_codec.decode("1.abc")
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.extra["path"] == "1.abc"


class TestPathParts:
    """祖先、自身、根与深度"""

    def test_parent_ids(self):
        assert path_codec.parent_ids("7.9.12") == [7, 9]
        assert path_codec.parent_ids("7") == []

    def test_self_and_root_id(self):
        assert path_codec.self_id("7.9.12") == 12
        assert path_codec.root_id("7.9.12") == 7
        assert path_codec.root_id("7") == 7
        assert path_codec.self_id("7") == 7

    def test_depth(self):
        """测试深度等于分隔符个数"""
        assert path_codec.depth("7") == 0
        assert path_codec.depth("7.9") == 1
        assert path_codec.depth("7.9.12") == 2

    def test_depth_matches_parent_count(self):
        for path in ["1", "1.2", "1.2.3", "10.20.30.40"]:
            assert path_codec.depth(path) == len(path_codec.parent_ids(path))

    def test_depth_empty(self):
        with pytest.raises(MalformedPathError):
            path_codec.depth("")


class TestStrictAncestor:
    """严格祖先判断"""

    def test_ancestor(self):
        assert path_codec.is_strict_ancestor_path("1", "1.2") is True
        assert path_codec.is_strict_ancestor_path("1", "1.2.3") is True
        assert path_codec.is_strict_ancestor_path("1.2", "1.2.3") is True

    def test_self_is_not_ancestor(self):
        assert path_codec.is_strict_ancestor_path("1.2", "1.2") is False

    def test_separator_boundary(self):
        """测试 1.2 不是 1.20 的祖先"""
        assert path_codec.is_strict_ancestor_path("1.2", "1.20") is False
        assert path_codec.is_strict_ancestor_path("1.2", "1.20.3") is False
        assert path_codec.is_strict_ancestor_path("1", "10.2") is False

    def test_descendant_is_not_ancestor(self):
        assert path_codec.is_strict_ancestor_path("1.2.3", "1.2") is False

    def test_empty_paths(self):
        assert path_codec.is_strict_ancestor_path("", "1.2") is False
        assert path_codec.is_strict_ancestor_path("1", None) is False


class TestLikePattern:
    """LIKE 模式"""

    def test_subtree_match_prefix(self):
        assert path_codec.subtree_match_prefix("1.2") == "1.2.%"
        assert path_codec.subtree_match_prefix("7") == "7.%"

    def test_escape_wildcards(self):
        """测试字符串主键中的通配符被转义"""
        assert path_codec.escape_like("a_b") == "a\\_b"
        assert path_codec.escape_like("50%") == "50\\%"
        assert path_codec.escape_like("a\\b") == "a\\\\b"
        assert path_codec.subtree_match_prefix("root_1") == "root\\_1.%"

    def test_subtree_match_prefix_empty(self):
        with pytest.raises(MalformedPathError):
            path_codec.subtree_match_prefix("")


class TestRewritePrefix:
    """前缀重写"""

    def test_rewrite_descendant(self):
        assert path_codec.rewrite_prefix("1.2.3", "1.2", "4.2") == "4.2.3"
        assert path_codec.rewrite_prefix("1.2.3.5", "1.2", "2") == "2.3.5"

    def test_rewrite_exact(self):
        assert path_codec.rewrite_prefix("1.2", "1.2", "4.2") == "4.2"

    def test_rewrite_keeps_segments_after_prefix(self):
        """测试只替换开头，后面出现的相同片段不受影响"""
        assert path_codec.rewrite_prefix("1.2.1.2", "1.2", "9.2") == "9.2.1.2"

    def test_rewrite_mismatch(self):
        """测试前缀不匹配"""
        with pytest.raises(PrefixMismatchError):
            path_codec.rewrite_prefix("1.20.3", "1.2", "4.2")
        with pytest.raises(PrefixMismatchError):
            path_codec.rewrite_prefix("5.6", "1.2", "4.2")
