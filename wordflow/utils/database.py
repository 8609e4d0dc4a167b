from sqlalchemy import create_engine, text, func
from sqlalchemy.orm import sessionmaker, Session
from tenacity import retry, stop_after_attempt, wait_exponential
import logging

from wordflow.config.settings import settings

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": 3600}


# 创建数据库引擎
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,  # 在DEBUG模式下输出SQL语句
    **_engine_kwargs(settings.DATABASE_URL),
)

# 创建SessionLocal类
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"数据库会话错误: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection() -> bool:
    """检查数据库连接是否正常"""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"数据库连接检查失败: {e}")
        return False
    finally:
        db.close()


@retry(
    stop=stop_after_attempt(settings.DB_CONNECT_RETRIES),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True
)
def wait_for_database():
    """启动时等待数据库可用"""
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    logger.info("数据库连接成功")


def create_tables(bind=None):
    """创建所有表"""
    from wordflow.models.base import Base
    from wordflow.models.user import User
    from wordflow.models.notebook import Notebook
    from wordflow.models.phrase import Phrase
    from wordflow.models.session import PracticeSession
    from wordflow.models.learning_record import LearningRecord
    from wordflow.models.daily_metric import DailyMetric

    Base.metadata.create_all(bind=bind or engine)


def init_db():
    """初始化数据库表和基础句子目录"""
    try:
        wait_for_database()
        create_tables()
        logger.info("数据库表初始化完成")

        db = SessionLocal()
        try:
            init_catalog(db)
        finally:
            db.close()

    except Exception as e:
        logger.error(f"数据库初始化失败: {e}")
        raise


# 基础句子数据 - 英文短句及其葡萄牙语翻译
BASE_PHRASES = [
    {"text": "How are you doing?", "translation": "Como você está?", "explanation": "Cumprimento informal do dia a dia", "level": "basic"},
    {"text": "Nice to meet you.", "translation": "Prazer em conhecer você.", "explanation": "Usado ao conhecer alguém", "level": "basic"},
    {"text": "Could you repeat that, please?", "translation": "Você poderia repetir, por favor?", "explanation": "Pedido educado de repetição", "level": "basic"},
    {"text": "I'm running late.", "translation": "Estou atrasado.", "explanation": "'Run late' = estar atrasado", "level": "basic"},
    {"text": "What do you do for a living?", "translation": "Com o que você trabalha?", "explanation": "Pergunta sobre profissão", "level": "basic"},
    {"text": "Where is the restroom?", "translation": "Onde fica o banheiro?", "explanation": "Restroom é comum nos EUA", "level": "basic"},
    {"text": "Can I get the check, please?", "translation": "Pode trazer a conta, por favor?", "explanation": "Pedir a conta no restaurante", "level": "basic"},
    {"text": "I'll take care of it.", "translation": "Eu cuido disso.", "explanation": "Assumir uma tarefa", "level": "basic"},
    {"text": "That makes sense.", "translation": "Isso faz sentido.", "explanation": "Concordar com um raciocínio", "level": "basic"},
    {"text": "See you later!", "translation": "Até mais!", "explanation": "Despedida informal", "level": "basic"},
    {"text": "Let's touch base next week.", "translation": "Vamos nos falar na semana que vem.", "explanation": "Expressão comum no trabalho", "level": "intermediate"},
    {"text": "I'm on the fence about it.", "translation": "Estou em dúvida sobre isso.", "explanation": "'On the fence' = indeciso", "level": "intermediate"},
    {"text": "It's up to you.", "translation": "Você que sabe.", "explanation": "Deixar a decisão para o outro", "level": "intermediate"},
    {"text": "I'll keep you posted.", "translation": "Vou te mantendo informado.", "explanation": "Prometer atualizações", "level": "intermediate"},
    {"text": "Let me sleep on it.", "translation": "Deixa eu pensar com calma.", "explanation": "Adiar uma decisão", "level": "intermediate"},
    {"text": "We're on the same page.", "translation": "Estamos alinhados.", "explanation": "Ter o mesmo entendimento", "level": "intermediate"},
    {"text": "That's a long shot.", "translation": "É pouco provável.", "explanation": "Algo com baixa chance de dar certo", "level": "advanced"},
    {"text": "Let's not beat around the bush.", "translation": "Vamos direto ao ponto.", "explanation": "Evitar rodeios", "level": "advanced"},
    {"text": "It slipped my mind.", "translation": "Eu esqueci completamente.", "explanation": "Esquecer algo sem querer", "level": "advanced"},
    {"text": "I'm swamped this week.", "translation": "Estou atolado esta semana.", "explanation": "Muito ocupado", "level": "advanced"},
]


def init_catalog(db: Session):
    """
    初始化句子目录，插入默认句子本和一批基础句子
    已有句子时跳过
    """
    from wordflow.models.notebook import Notebook
    from wordflow.models.phrase import Phrase
    from wordflow.models.enums import NotebookKind, LearnerLevel

    logger.info("开始初始化句子目录")

    try:
        existing = db.query(func.count(Phrase.id)).scalar()
        if existing:
            logger.info(f"句子目录已有{existing}个句子，跳过初始化")
            return

        notebook = Notebook(
            name="Essencial",
            description="Frases do dia a dia para começar",
            kind=NotebookKind.DEFAULT,
            total_phrases=len(BASE_PHRASES),
            icon="📘",
            color="#4F46E5",
        )
        db.add(notebook)
        db.flush()

        for phrase_data in BASE_PHRASES:
            fields = dict(phrase_data, level=LearnerLevel(phrase_data["level"]))
            db.add(Phrase(notebook_id=notebook.id, **fields))
            logger.debug(f"添加句子: {phrase_data['text']} - {phrase_data['translation']}")

        db.commit()
        logger.info(f"句子目录初始化完成，新增{len(BASE_PHRASES)}个句子")

    except Exception as e:
        db.rollback()
        logger.error(f"初始化句子目录失败: {e}")
        raise

