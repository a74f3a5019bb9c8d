"""
标签模板解析与渲染引擎 - 后端核心模块

模块结构：
- config/     运行期配置加载
- models/     数据模型定义（模板/元素/字段/会话/打印任务/计数器）
- layout/     单位换算与几何引擎（移动/缩放/吸附）
- binding/    字段绑定解析与值格式化
- data/       数据源（行数据）与模板仓库
- printing/   批量打印编排与打印面渲染
- sequence/   CIPL 自增单号服务（多层存储）
"""

__version__ = "0.1.0"
