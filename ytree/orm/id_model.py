"""ID模型基类

声明基类 Base 与整数自增主键模型 IdModel。
树路径中的每一段都是节点主键的字符串形式，因此主键必须不可变，
且字符串形式中不能包含路径分隔符 "."。
"""

from sqlalchemy import Integer
from sqlalchemy.orm import declarative_base, Mapped, mapped_column


# 声明基类
Base = declarative_base()


class IdModel(Base):
    """ID模型基类

    使用示例:
        class Category(IdModel):
            __tablename__ = "category"
            name = mapped_column(String(50))
    """
    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="主键")
